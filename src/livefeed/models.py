"""
Tournament entity records.

Records are built from the camelCase documents the admin side writes
(``from_dict``) and turned back into them (``to_dict``).
"""
from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional


class ModelError(ValueError):
    """A stored record is missing a field or carries an invalid value."""


class TournamentSize(Enum):
    SMALL = 'SMALL'
    MEDIUM = 'MEDIUM'
    LARGE = 'LARGE'
    BIG = 'BIG'


class TournamentState(Enum):
    LOBBY = 'LOBBY'
    RUNNING = 'RUNNING'
    FINISHED = 'FINISHED'


def _require(data: Dict, key: str, kind: str):
    if not isinstance(data, dict):
        raise ModelError(f'{kind} record must be a mapping, got {type(data).__name__}')
    value = data.get(key)
    if value is None or value == '':
        raise ModelError(f'{kind} record is missing {key!r}')
    return value


def _as_id(value) -> str:
    return str(value)


def _optional_id(value) -> Optional[str]:
    if value is None or value == '':
        return None
    return str(value)


def parse_timestamp(value) -> Optional[datetime]:
    """Accept a YAML timestamp, an ISO-8601 string, or nothing."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            raise ModelError(f'Invalid timestamp: {value!r}')
    raise ModelError(f'Invalid timestamp: {value!r}')


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_enum(enum_cls, value, kind: str):
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        allowed = ', '.join(member.value for member in enum_cls)
        raise ModelError(f'{kind} must be one of {allowed}, got {value!r}')


def _parse_score(value, field: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ModelError(f'{field} must be an integer, got {value!r}')
    return value


class Tournament:
    """The tournament root record.

    ``password`` gates administrative writes. It lives on this record only
    and has no counterpart on the public view.
    """

    def __init__(self, id, name, code, password='', tournament_size=TournamentSize.SMALL,
                 tournament_state=TournamentState.LOBBY, created_at=None, updated_at=None):
        self.id = id
        self.name = name
        self.code = code
        self.password = password
        self.tournament_size = tournament_size
        self.tournament_state = tournament_state
        self.created_at = created_at
        self.updated_at = updated_at

    @classmethod
    def from_dict(cls, data: Dict) -> 'Tournament':
        return cls(
            id=_as_id(_require(data, 'id', 'Tournament')),
            name=str(_require(data, 'name', 'Tournament')),
            code=str(_require(data, 'code', 'Tournament')),
            password=str(data.get('password') or ''),
            tournament_size=_parse_enum(TournamentSize, data.get('tournamentSize', 'SMALL'), 'tournamentSize'),
            tournament_state=_parse_enum(TournamentState, data.get('tournamentState', 'LOBBY'), 'tournamentState'),
            created_at=parse_timestamp(data.get('createdAt')),
            updated_at=parse_timestamp(data.get('updatedAt')),
        )

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'password': self.password,
            'tournamentSize': self.tournament_size.value,
            'tournamentState': self.tournament_state.value,
            'createdAt': format_timestamp(self.created_at),
            'updatedAt': format_timestamp(self.updated_at),
        }

    def __repr__(self):
        return f"Tournament(id={self.id}, name={self.name}, state={self.tournament_state.value})"


class Team:
    def __init__(self, id, name, code, tournament_id, group_id=None, created_at=None, updated_at=None):
        self.id = id
        self.name = name
        self.code = code
        self.tournament_id = tournament_id
        self.group_id = group_id
        self.created_at = created_at
        self.updated_at = updated_at

    @classmethod
    def from_dict(cls, data: Dict, tournament_id: Optional[str] = None) -> 'Team':
        return cls(
            id=_as_id(_require(data, 'id', 'Team')),
            name=str(_require(data, 'name', 'Team')),
            code=str(_require(data, 'code', 'Team')),
            tournament_id=_optional_id(data.get('tournamentId')) or tournament_id,
            group_id=_optional_id(data.get('groupId')),
            created_at=parse_timestamp(data.get('createdAt')),
            updated_at=parse_timestamp(data.get('updatedAt')),
        )

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'createdAt': format_timestamp(self.created_at),
            'updatedAt': format_timestamp(self.updated_at),
            'tournamentId': self.tournament_id,
            'groupId': self.group_id,
        }

    def __repr__(self):
        return f"Team(id={self.id}, name={self.name}, group={self.group_id})"


class Player:
    def __init__(self, id, name, team_id, created_at=None, updated_at=None):
        self.id = id
        self.name = name
        self.team_id = team_id
        self.created_at = created_at
        self.updated_at = updated_at

    @classmethod
    def from_dict(cls, data: Dict, team_id: Optional[str] = None) -> 'Player':
        return cls(
            id=_as_id(_require(data, 'id', 'Player')),
            name=str(_require(data, 'name', 'Player')),
            team_id=_optional_id(data.get('teamId')) or team_id,
            created_at=parse_timestamp(data.get('createdAt')),
            updated_at=parse_timestamp(data.get('updatedAt')),
        )

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'createdAt': format_timestamp(self.created_at),
            'updatedAt': format_timestamp(self.updated_at),
            'teamId': self.team_id,
        }

    def __repr__(self):
        return f"Player(id={self.id}, name={self.name}, team={self.team_id})"


class Group:
    def __init__(self, id, tournament_id, created_at=None, updated_at=None):
        self.id = id
        self.tournament_id = tournament_id
        self.created_at = created_at
        self.updated_at = updated_at

    @classmethod
    def from_dict(cls, data: Dict, tournament_id: Optional[str] = None) -> 'Group':
        return cls(
            id=_as_id(_require(data, 'id', 'Group')),
            tournament_id=_optional_id(data.get('tournamentId')) or tournament_id,
            created_at=parse_timestamp(data.get('createdAt')),
            updated_at=parse_timestamp(data.get('updatedAt')),
        )

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'createdAt': format_timestamp(self.created_at),
            'updatedAt': format_timestamp(self.updated_at),
            'tournamentId': self.tournament_id,
        }

    def __repr__(self):
        return f"Group(id={self.id})"


class Match:
    """A match between two teams.

    A match with neither ``winner_id`` nor ``looser_id`` set has not been
    decided yet. Scores are recorded independently of the outcome.
    """

    def __init__(self, id, tournament_id, team1_id, team2_id, team1_score=0, team2_score=0,
                 winner_id=None, looser_id=None, created_at=None, updated_at=None):
        self.id = id
        self.tournament_id = tournament_id
        self.team1_id = team1_id
        self.team2_id = team2_id
        self.team1_score = team1_score
        self.team2_score = team2_score
        self.winner_id = winner_id
        self.looser_id = looser_id
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def is_decided(self) -> bool:
        return self.winner_id is not None or self.looser_id is not None

    @property
    def team_ids(self):
        return (self.team1_id, self.team2_id)

    @classmethod
    def from_dict(cls, data: Dict, tournament_id: Optional[str] = None) -> 'Match':
        return cls(
            id=_as_id(_require(data, 'id', 'Match')),
            tournament_id=_optional_id(data.get('tournamentId')) or tournament_id,
            team1_id=_as_id(_require(data, 'team1Id', 'Match')),
            team2_id=_as_id(_require(data, 'team2Id', 'Match')),
            team1_score=_parse_score(data.get('team1Score'), 'team1Score'),
            team2_score=_parse_score(data.get('team2Score'), 'team2Score'),
            winner_id=_optional_id(data.get('winnerId')),
            looser_id=_optional_id(data.get('looserId')),
            created_at=parse_timestamp(data.get('createdAt')),
            updated_at=parse_timestamp(data.get('updatedAt')),
        )

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'createdAt': format_timestamp(self.created_at),
            'updatedAt': format_timestamp(self.updated_at),
            'team1Id': self.team1_id,
            'team2Id': self.team2_id,
            'winnerId': self.winner_id,
            'looserId': self.looser_id,
            'tournamentId': self.tournament_id,
            'team1Score': self.team1_score,
            'team2Score': self.team2_score,
        }

    def __repr__(self):
        return (f"Match(id={self.id}, teams=({self.team1_id}, {self.team2_id}), "
                f"score={self.team1_score}-{self.team2_score}, winner={self.winner_id})")
