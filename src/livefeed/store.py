"""
Read-only YAML tournament store.

Each tournament is one document at ``<data_dir>/tournaments/<id>.yaml``::

    tournament: {id, name, code, password, tournamentSize, tournamentState}
    teams:
      - {id, name, code, groupId, players: [{id, name}]}
    groups:
      - {id}
    matches:
      - {id, team1Id, team2Id, team1Score, team2Score, winnerId, looserId}

Child records may omit ``tournamentId``/``teamId``; they default to the
enclosing document. Admin tools write these files while holding the same
``.lock`` file, so a reader never observes a half-written document.
"""
import logging
import os
from typing import List

import yaml
from filelock import FileLock, Timeout

from livefeed.integrity import IntegrityError, check_snapshot
from livefeed.models import Group, Match, ModelError, Player, Team, Tournament
from livefeed.snapshot import TournamentSnapshot

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 10


class StoreError(Exception):
    """The store could not produce a complete snapshot."""


class TournamentNotFound(StoreError):
    """No tournament matches the requested id or code."""

    def __init__(self, key):
        self.key = key
        super().__init__(f'Tournament not found: {key!r}')


def is_valid_id(tournament_id) -> bool:
    if not isinstance(tournament_id, str) or not tournament_id.strip():
        return False
    if '..' in tournament_id or '/' in tournament_id or '\\' in tournament_id:
        return False
    return not tournament_id.startswith('.')


def _records(parent, key: str) -> List:
    """The list stored under ``key``; a missing or empty value is no records."""
    value = parent.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ModelError(f"'{key}' must be a list, got {type(value).__name__}")
    return value


def snapshot_from_document(document) -> TournamentSnapshot:
    """Build a snapshot from a parsed tournament document.

    Raises ModelError when a record is malformed.
    """
    if not isinstance(document, dict) or not isinstance(document.get('tournament'), dict):
        raise ModelError("Document has no 'tournament' mapping")

    tournament = Tournament.from_dict(document['tournament'])
    tid = tournament.id

    teams, players = [], []
    for team_data in _records(document, 'teams'):
        team = Team.from_dict(team_data, tournament_id=tid)
        teams.append(team)
        for player_data in _records(team_data, 'players'):
            players.append(Player.from_dict(player_data, team_id=team.id))

    groups = [Group.from_dict(g, tournament_id=tid) for g in _records(document, 'groups')]
    matches = [Match.from_dict(m, tournament_id=tid) for m in _records(document, 'matches')]
    return TournamentSnapshot(tournament, teams=teams, players=players, groups=groups, matches=matches)


class YamlTournamentStore:
    """Serves tournament snapshots from a directory of YAML documents."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self.tournaments_dir = os.path.join(data_dir, 'tournaments')
        self._lock = FileLock(os.path.join(data_dir, '.lock'), timeout=LOCK_TIMEOUT_SECONDS)

    def _path(self, tournament_id: str) -> str:
        return os.path.join(self.tournaments_dir, f'{tournament_id}.yaml')

    def _read(self, path: str):
        try:
            with self._lock:
                with open(path, 'r', encoding='utf-8') as f:
                    return yaml.safe_load(f)
        except Timeout:
            raise StoreError(f'Timed out waiting for data lock on {self.data_dir}')
        except yaml.YAMLError as e:
            logger.warning(f'Failed to parse {path}: {e}')
            raise StoreError(f'Unreadable tournament document {path}: {e}')
        except OSError as e:
            raise StoreError(f'Failed to read {path}: {e}')

    def list_tournament_ids(self) -> List[str]:
        if not os.path.isdir(self.tournaments_dir):
            return []
        return sorted(
            name[:-len('.yaml')] for name in os.listdir(self.tournaments_dir)
            if name.endswith('.yaml') and not name.startswith('.')
        )

    def fetch_tournament_snapshot(self, tournament_id) -> TournamentSnapshot:
        """Load the complete, validated snapshot of one tournament.

        Raises:
            TournamentNotFound: unknown or malformed id.
            StoreError: the document is unreadable or inconsistent.
        """
        if not is_valid_id(tournament_id):
            raise TournamentNotFound(tournament_id)
        path = self._path(tournament_id)
        if not os.path.isfile(path):
            raise TournamentNotFound(tournament_id)

        document = self._read(path)
        try:
            snapshot = snapshot_from_document(document)
        except ModelError as e:
            raise StoreError(f'Malformed tournament document {path}: {e}')
        if snapshot.tournament_id != tournament_id:
            raise StoreError(
                f'Document {path} holds tournament {snapshot.tournament_id}, expected {tournament_id}'
            )
        try:
            return check_snapshot(snapshot)
        except IntegrityError as e:
            raise StoreError(str(e))

    def find_tournament_id(self, code) -> str:
        """Resolve a join code to the id of the tournament that owns it."""
        if not isinstance(code, str) or not code:
            raise TournamentNotFound(code)
        matches = []
        for tournament_id in self.list_tournament_ids():
            try:
                document = self._read(self._path(tournament_id))
            except StoreError as e:
                logger.warning(f'Skipping tournament {tournament_id} during code lookup: {e}')
                continue
            record = document.get('tournament') if isinstance(document, dict) else None
            if isinstance(record, dict) and str(record.get('code')) == code:
                matches.append(tournament_id)
        if not matches:
            raise TournamentNotFound(code)
        if len(matches) > 1:
            raise StoreError(f'Join code {code!r} is shared by tournaments {", ".join(matches)}')
        return matches[0]
