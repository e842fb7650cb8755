"""
Tests for snapshot lookups, the public projection and redaction.
"""
import json
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from livefeed.models import Team
from livefeed.snapshot import public_view, redact, render_public_snapshot


class TestSnapshotLookups:
    """Tests for TournamentSnapshot cross-references."""

    def test_team_lookup(self, snapshot):
        assert snapshot.team('A').name == 'Team A'
        assert snapshot.team('missing') is None
        assert snapshot.team(None) is None

    def test_players_of(self, snapshot):
        assert [p.name for p in snapshot.players_of('A')] == ['Alice', 'Arno']

    def test_matches_by_role(self, snapshot):
        assert [m.id for m in snapshot.matches_of('A', 'winner')] == ['M1']
        assert snapshot.matches_of('A', 'looser') == []
        assert [m.id for m in snapshot.matches_of('B', 'team2')] == ['M1']

    def test_unknown_role(self, snapshot):
        with pytest.raises(ValueError):
            snapshot.matches_of('A', 'referee')

    def test_group_matches_reachable_through_teams(self, snapshot):
        assert [m.id for m in snapshot.group_matches('G1')] == ['M1']

    def test_ungrouped_team_match_not_in_group(self, snapshot):
        from livefeed.models import Match
        snapshot.teams.append(Team('C', 'Team C', 'TC', 'T1'))
        snapshot.teams.append(Team('D', 'Team D', 'TD', 'T1'))
        snapshot.matches.append(Match('M2', 'T1', 'C', 'D'))
        assert [m.id for m in snapshot.group_matches('G1')] == ['M1']


class TestPublicView:
    """Tests for the viewer-facing projection."""

    def test_view_has_no_password_attribute(self, snapshot):
        view = public_view(snapshot)
        assert not hasattr(view, 'password')
        assert snapshot.tournament.password == 's3cret'

    def test_document_has_no_password(self, snapshot):
        document = public_view(snapshot).to_dict()
        assert 'password' not in document
        assert 's3cret' not in json.dumps(document)

    def test_root_fields(self, snapshot):
        document = public_view(snapshot).to_dict()
        assert document['id'] == 'T1'
        assert document['code'] == 'JOIN1'
        assert document['tournamentState'] == 'RUNNING'
        assert document['createdAt'] == '2026-01-01T10:00:00'

    def test_matches_carry_team_references(self, snapshot):
        match = public_view(snapshot).to_dict()['matches'][0]
        assert match['winnerId'] == 'A'
        assert match['winner']['name'] == 'Team A'
        assert match['looser']['id'] == 'B'
        assert match['team1']['id'] == 'A'

    def test_undecided_match_has_null_outcome(self, snapshot):
        snapshot.matches[0].winner_id = None
        snapshot.matches[0].looser_id = None
        match = public_view(snapshot).to_dict()['matches'][0]
        assert match['winner'] is None
        assert match['looser'] is None

    def test_teams_carry_players_and_matches(self, snapshot):
        team_a = public_view(snapshot).to_dict()['teams'][0]
        assert [p['id'] for p in team_a['players']] == ['P1', 'P2']
        assert [m['id'] for m in team_a['team1Matches']] == ['M1']
        assert [m['id'] for m in team_a['winnerMatches']] == ['M1']
        assert team_a['team2Matches'] == []
        assert team_a['looserMatches'] == []

    def test_groups_nest_teams_and_matches(self, snapshot):
        group = public_view(snapshot).to_dict()['groups'][0]
        assert [t['id'] for t in group['teams']] == ['A', 'B']
        assert group['matches'][0]['winner']['id'] == 'A'

    def test_groups_without_nested_matches(self, snapshot):
        group = public_view(snapshot).to_dict(nest_group_matches=False)['groups'][0]
        assert 'matches' not in group
        assert len(group['teams']) == 2


class TestRedaction:
    """Tests for the redaction step."""

    def test_removes_password(self):
        assert redact({'id': 'T1', 'password': 'pw'}) == {'id': 'T1'}

    def test_idempotent(self, snapshot):
        once = redact(snapshot.tournament.to_dict())
        twice = redact(once)
        assert once == twice
        assert 'password' not in once and 'password' not in twice

    def test_does_not_mutate_input(self):
        document = {'id': 'T1', 'password': 'pw'}
        redact(document)
        assert document['password'] == 'pw'

    def test_rendered_snapshot_is_compact_json(self, snapshot):
        payload = render_public_snapshot(snapshot)
        assert '\n' not in payload
        decoded = json.loads(payload)
        assert 'password' not in decoded
        assert decoded['matches'][0]['id'] == 'M1'
