"""
Referential and outcome rules every tournament snapshot must satisfy.

``find_violations`` follows the same contract as the schedule validators:
it returns a list of human-readable problems, empty when the snapshot is
consistent.
"""
from collections import Counter
from typing import List

from livefeed.snapshot import TournamentSnapshot


class IntegrityError(Exception):
    """Raised when a snapshot breaks one or more tournament invariants."""

    def __init__(self, tournament_id, violations):
        self.tournament_id = tournament_id
        self.violations = list(violations)
        super().__init__(
            f"Tournament {tournament_id} has {len(self.violations)} integrity violation(s): "
            + '; '.join(self.violations)
        )


def _duplicates(values) -> List:
    return sorted(value for value, count in Counter(values).items() if count > 1)


def _check_unique_ids(snapshot: TournamentSnapshot) -> List[str]:
    violations = []
    for kind, records in (('Team', snapshot.teams), ('Player', snapshot.players),
                          ('Group', snapshot.groups), ('Match', snapshot.matches)):
        for dup in _duplicates(r.id for r in records):
            violations.append(f"{kind} id {dup} is used more than once")
    return violations


def _check_ownership(snapshot: TournamentSnapshot) -> List[str]:
    violations = []
    tid = snapshot.tournament_id
    for kind, records in (('Team', snapshot.teams), ('Group', snapshot.groups),
                          ('Match', snapshot.matches)):
        for record in records:
            if record.tournament_id != tid:
                violations.append(
                    f"{kind} {record.id} belongs to tournament {record.tournament_id}, not {tid}"
                )
    return violations


def _check_teams(snapshot: TournamentSnapshot) -> List[str]:
    violations = []
    for dup in _duplicates(t.name for t in snapshot.teams):
        violations.append(f"Team name {dup!r} is not unique within the tournament")
    for dup in _duplicates(t.code for t in snapshot.teams):
        violations.append(f"Team code {dup!r} is not unique within the tournament")

    group_ids = {g.id for g in snapshot.groups}
    for team in snapshot.teams:
        if team.group_id is not None and team.group_id not in group_ids:
            violations.append(
                f"Team {team.id} references group {team.group_id} outside tournament {snapshot.tournament_id}"
            )

    team_ids = {t.id for t in snapshot.teams}
    for player in snapshot.players:
        if player.team_id not in team_ids:
            violations.append(f"Player {player.id} references unknown team {player.team_id}")
    return violations


def check_match(match, team_ids=None) -> List[str]:
    """Outcome rules for a single match.

    If ``team_ids`` is given, both sides must also be teams of the tournament.
    """
    violations = []
    if match.team1_id == match.team2_id:
        violations.append(f"Match {match.id} pits team {match.team1_id} against itself")
    if team_ids is not None:
        for side in (match.team1_id, match.team2_id):
            if side not in team_ids:
                violations.append(f"Match {match.id} references unknown team {side}")

    sides = {match.team1_id, match.team2_id}
    if match.winner_id is not None and match.winner_id not in sides:
        violations.append(f"Match {match.id} winner {match.winner_id} did not play in it")
    if match.looser_id is not None and match.looser_id not in sides:
        violations.append(f"Match {match.id} looser {match.looser_id} did not play in it")
    if match.winner_id is not None and match.winner_id == match.looser_id:
        violations.append(f"Match {match.id} has {match.winner_id} as both winner and looser")

    for field in ('team1_score', 'team2_score'):
        score = getattr(match, field)
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            violations.append(f"Match {match.id} {field} must be a non-negative integer, got {score!r}")
    return violations


def find_violations(snapshot: TournamentSnapshot) -> List[str]:
    """Return every invariant the snapshot breaks."""
    violations = []
    violations.extend(_check_unique_ids(snapshot))
    violations.extend(_check_ownership(snapshot))
    violations.extend(_check_teams(snapshot))
    team_ids = {t.id for t in snapshot.teams}
    for match in snapshot.matches:
        violations.extend(check_match(match, team_ids))
    return violations


def check_snapshot(snapshot: TournamentSnapshot) -> TournamentSnapshot:
    violations = find_violations(snapshot)
    if violations:
        raise IntegrityError(snapshot.tournament_id, violations)
    return snapshot
