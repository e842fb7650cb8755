"""
Tournament snapshots and their viewer-facing projection.

A ``TournamentSnapshot`` is the normalized result of one storage fetch: the
tournament record plus flat collections of teams, players, groups and
matches cross-referenced by id. ``PublicTournamentView`` is the only shape
that leaves the server; it is built field by field and has no password.
"""
import json
from typing import Dict, List, Optional

from livefeed.models import Group, Match, Player, Team, Tournament, format_timestamp

MATCH_ROLES = ('team1', 'team2', 'winner', 'looser')

# Tournament fields copied onto the public view. Anything not listed here
# never reaches a viewer.
PUBLIC_TOURNAMENT_FIELDS = ('id', 'name', 'code', 'tournament_size', 'tournament_state',
                            'created_at', 'updated_at')

SECRET_KEYS = ('password',)


class TournamentSnapshot:
    """Point-in-time materialization of a tournament and everything it owns."""

    def __init__(self, tournament: Tournament, teams=None, players=None, groups=None, matches=None):
        self.tournament = tournament
        self.teams: List[Team] = list(teams or [])
        self.players: List[Player] = list(players or [])
        self.groups: List[Group] = list(groups or [])
        self.matches: List[Match] = list(matches or [])
        self._teams_by_id = {team.id: team for team in self.teams}

    @property
    def tournament_id(self) -> str:
        return self.tournament.id

    def team(self, team_id: Optional[str]) -> Optional[Team]:
        if team_id is None:
            return None
        return self._teams_by_id.get(team_id)

    def players_of(self, team_id: str) -> List[Player]:
        return [p for p in self.players if p.team_id == team_id]

    def teams_in(self, group_id: str) -> List[Team]:
        return [t for t in self.teams if t.group_id == group_id]

    def matches_of(self, team_id: str, role: str) -> List[Match]:
        """Matches where ``team_id`` appears in the given role."""
        if role not in MATCH_ROLES:
            raise ValueError(f'Unknown match role: {role!r}')
        attr = f'{role}_id'
        return [m for m in self.matches if getattr(m, attr) == team_id]

    def group_matches(self, group_id: str) -> List[Match]:
        """Matches in which at least one team of the group plays."""
        member_ids = {t.id for t in self.teams_in(group_id)}
        return [m for m in self.matches if m.team1_id in member_ids or m.team2_id in member_ids]

    def __repr__(self):
        return (f"TournamentSnapshot(id={self.tournament_id}, teams={len(self.teams)}, "
                f"groups={len(self.groups)}, matches={len(self.matches)})")


class PublicTournamentView:
    """Redacted projection of a snapshot, safe to send to viewers."""

    def __init__(self, snapshot: TournamentSnapshot):
        for field in PUBLIC_TOURNAMENT_FIELDS:
            setattr(self, field, getattr(snapshot.tournament, field))
        self._snapshot = snapshot

    def _match_with_teams(self, match: Match) -> Dict:
        data = match.to_dict()
        for role in MATCH_ROLES:
            team = self._snapshot.team(getattr(match, f'{role}_id'))
            data[role] = team.to_dict() if team is not None else None
        return data

    def _team(self, team: Team) -> Dict:
        data = team.to_dict()
        data['players'] = [p.to_dict() for p in self._snapshot.players_of(team.id)]
        for role in MATCH_ROLES:
            data[f'{role}Matches'] = [m.to_dict() for m in self._snapshot.matches_of(team.id, role)]
        return data

    def _group(self, group: Group, nest_matches: bool) -> Dict:
        data = group.to_dict()
        data['teams'] = [t.to_dict() for t in self._snapshot.teams_in(group.id)]
        if nest_matches:
            data['matches'] = [self._match_with_teams(m) for m in self._snapshot.group_matches(group.id)]
        return data

    def to_dict(self, nest_group_matches: bool = True) -> Dict:
        snapshot = self._snapshot
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'tournamentSize': self.tournament_size.value,
            'tournamentState': self.tournament_state.value,
            'createdAt': format_timestamp(self.created_at),
            'updatedAt': format_timestamp(self.updated_at),
            'teams': [self._team(t) for t in snapshot.teams],
            'matches': [self._match_with_teams(m) for m in snapshot.matches],
            'groups': [self._group(g, nest_group_matches) for g in snapshot.groups],
        }


def public_view(snapshot: TournamentSnapshot) -> PublicTournamentView:
    return PublicTournamentView(snapshot)


def redact(document: Dict) -> Dict:
    """Return a copy of a serialized tournament without secret keys.

    Applied to every document right before it is written. Redacting an
    already redacted document returns an equal document.
    """
    return {key: value for key, value in document.items() if key not in SECRET_KEYS}


def dumps(document) -> str:
    return json.dumps(document, separators=(',', ':'), ensure_ascii=False)


def render_public_snapshot(snapshot: TournamentSnapshot, nest_group_matches: bool = True) -> str:
    """Project, redact and serialize a snapshot for the wire."""
    return dumps(redact(public_view(snapshot).to_dict(nest_group_matches=nest_group_matches)))
