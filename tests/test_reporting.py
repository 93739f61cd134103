"""Tests for markdown report generation."""

from aura_tournament.models import StandingsEntry
from aura_tournament.services.pairing import RoundResult, ScheduledMatch, TeamPairing
from aura_tournament.services.reporting import (
    generate_leaderboard,
    generate_round_report,
    generate_teammate_report,
)
from aura_tournament.services.storage import CreatedMatch


class TestLeaderboard:
    """Tests for the standings table."""

    def test_sorted_by_points_then_rating(self):
        """Test rows follow the pairing order."""
        standings = [
            StandingsEntry(player_id=1, rating=30.0, points=0, name="ann"),
            StandingsEntry(player_id=2, rating=20.0, points=2, name="bob"),
            StandingsEntry(player_id=3, rating=25.0, points=2, name="cat"),
        ]
        report = generate_leaderboard(standings)
        lines = report.splitlines()

        assert lines[0] == "# Leaderboard"
        body = [line for line in lines if line.startswith("|") and "---" not in line][1:]
        assert [row.split("|")[2].strip() for row in body] == ["cat", "bob", "ann"]
        assert "25.00" in body[0]

    def test_unnamed_player_label(self):
        """Test players without a name get a fallback label."""
        report = generate_leaderboard([StandingsEntry(player_id=9, rating=25.0)])
        assert "Player 9" in report


class TestTeammateReport:
    """Tests for the partnership listing."""

    def test_lists_partners(self):
        """Test each player's partners are listed by name."""
        report = generate_teammate_report({1: {2, 3}, 2: {1}, 3: {1}}, {1: "ann", 2: "bob"})
        assert "# Teammate History" in report
        assert "bob, Player 3" in report


class TestRoundReport:
    """Tests for the generated round table."""

    def test_one_row_per_match(self):
        """Test each scheduled match appears with both teams."""
        names = ["ann", "bob", "cat", "dan"]
        players = [
            StandingsEntry(player_id=i, rating=25.0, name=n)
            for i, n in enumerate(names, start=1)
        ]
        pairing = TeamPairing(
            team_a=(players[0], players[3]),
            team_b=(players[1], players[2]),
            diff=0.0,
            real_diff=0.0,
        )
        created = CreatedMatch(
            match_id=11,
            round=2,
            team_a_id=21,
            team_b_id=22,
            team_a_players=(1, 4),
            team_b_players=(2, 3),
        )
        result = RoundResult(
            tournament_id=1,
            round_number=2,
            matches=[ScheduledMatch(match=created, pairing=pairing)],
        )

        report = generate_round_report(result)
        assert report.startswith("# Round 2")
        assert "ann & dan" in report
        assert "bob & cat" in report
        assert "0.00" in report
