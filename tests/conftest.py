"""
Shared pytest fixtures for the tournament live feed tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
import yaml

# Add src and scripts directories to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'scripts'))

from livefeed.store import YamlTournamentStore, snapshot_from_document
from watch import iter_events


class FakeClock:
    """Virtual clock: ``sleep`` advances ``time`` instead of blocking."""

    def __init__(self, start=0.0):
        self.now = start
        self.sleeps = []

    def time(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds):
        self.now += seconds


def parse_event(frame):
    """Decode one SSE frame the way a streaming client would."""
    events = list(iter_events(frame.split('\n')))
    assert len(events) == 1, f'expected one event in {frame!r}'
    return events[0]


def make_tournament_document(tournament_id='T1', code='JOIN1', password='s3cret'):
    """Tournament T1: teams A and B in group G1, match M1 won 2-1 by A."""
    return {
        'tournament': {
            'id': tournament_id,
            'name': 'Spring Cup',
            'code': code,
            'password': password,
            'tournamentSize': 'SMALL',
            'tournamentState': 'RUNNING',
            'createdAt': '2026-01-01T10:00:00',
            'updatedAt': '2026-01-01T12:00:00',
        },
        'teams': [
            {'id': 'A', 'name': 'Team A', 'code': 'TA', 'groupId': 'G1',
             'players': [{'id': 'P1', 'name': 'Alice'}, {'id': 'P2', 'name': 'Arno'}]},
            {'id': 'B', 'name': 'Team B', 'code': 'TB', 'groupId': 'G1',
             'players': [{'id': 'P3', 'name': 'Bea'}]},
        ],
        'groups': [{'id': 'G1'}],
        'matches': [
            {'id': 'M1', 'team1Id': 'A', 'team2Id': 'B', 'team1Score': 2, 'team2Score': 1,
             'winnerId': 'A', 'looserId': 'B'},
        ],
    }


def write_tournament(data_dir, document):
    tournaments_dir = os.path.join(str(data_dir), 'tournaments')
    os.makedirs(tournaments_dir, exist_ok=True)
    path = os.path.join(tournaments_dir, f"{document['tournament']['id']}.yaml")
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(document, f, default_flow_style=False, sort_keys=False)
    return path


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def tournament_document():
    return make_tournament_document()


@pytest.fixture
def snapshot(tournament_document):
    return snapshot_from_document(tournament_document)


@pytest.fixture
def data_dir(tmp_path, tournament_document):
    """Temporary YAML store holding tournament T1."""
    write_tournament(tmp_path, tournament_document)
    return tmp_path


@pytest.fixture
def store(data_dir):
    return YamlTournamentStore(str(data_dir))


@pytest.fixture
def client(data_dir, monkeypatch):
    """Flask test client reading from the temporary store with no tick delay."""
    import app as app_module
    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    monkeypatch.setattr(app_module, 'TICK_SECONDS', 0.0)
    monkeypatch.setattr(app_module, 'NEST_GROUP_MATCHES', True)
    app_module.app.config['TESTING'] = True
    return app_module.app.test_client()
