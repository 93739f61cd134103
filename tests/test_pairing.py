"""Tests for balanced doubles pairing."""

from itertools import combinations

import pytest

from aura_tournament.models import StandingsEntry
from aura_tournament.services.pairing import (
    best_split,
    candidate_matches,
    deterministic_order,
    generate_pairings,
)


def roster(*ratings: float, points: float = 0.0) -> list[StandingsEntry]:
    return [
        StandingsEntry(player_id=i, rating=r, points=points)
        for i, r in enumerate(ratings, start=1)
    ]


def partnerships(pairings) -> set[frozenset[int]]:
    return {
        frozenset(p.player_id for p in team)
        for pairing in pairings
        for team in (pairing.team_a, pairing.team_b)
    }


class TestDeterministicOrder:
    """Tests for the roster sort."""

    def test_points_then_rating_then_id(self):
        """Test sorting by points desc, rating desc, id asc."""
        players = [
            StandingsEntry(player_id=3, rating=20.0, points=1),
            StandingsEntry(player_id=1, rating=30.0, points=0),
            StandingsEntry(player_id=2, rating=20.0, points=1),
            StandingsEntry(player_id=4, rating=25.0, points=1),
        ]
        assert [p.player_id for p in deterministic_order(players)] == [4, 2, 3, 1]


class TestBestSplit:
    """Tests for splitting four players into two teams."""

    def test_balances_strongest_with_weakest(self):
        """Test the best split pairs the top and bottom players."""
        group = deterministic_order(roster(40.0, 30.0, 20.0, 10.0))
        pairing = best_split(group, {})
        assert {p.player_id for p in pairing.team_a} == {1, 4}
        assert {p.player_id for p in pairing.team_b} == {2, 3}
        assert pairing.diff == 0.0
        assert pairing.real_diff == 0.0

    def test_points_dominate_rating(self):
        """Test standings points are weighted by the scale factor."""
        players = [
            StandingsEntry(player_id=1, rating=10.0, points=2),
            StandingsEntry(player_id=2, rating=40.0, points=1),
            StandingsEntry(player_id=3, rating=40.0, points=1),
            StandingsEntry(player_id=4, rating=10.0, points=0),
        ]
        pairing = best_split(deterministic_order(players), {})
        assert {p.player_id for p in pairing.team_a} == {1, 4}

    def test_skips_prior_partners(self):
        """Test a split repeating a partnership is never chosen."""
        group = deterministic_order(roster(40.0, 30.0, 20.0, 10.0))
        pairing = best_split(group, {1: {4}, 4: {1}})
        assert frozenset({1, 4}) not in partnerships([pairing])

    def test_all_splits_used(self):
        """Test None when every split repeats a partnership."""
        group = deterministic_order(roster(25.0, 25.0, 25.0, 25.0))
        history = {1: {2, 3, 4}, 2: {1}, 3: {1}, 4: {1}}
        assert best_split(group, history) is None

    def test_tie_keeps_first_split(self):
        """Test equal diffs keep the first split in order."""
        group = deterministic_order(roster(25.0, 25.0, 25.0, 25.0))
        pairing = best_split(group, {})
        assert [p.player_id for p in pairing.team_a] == [1, 2]
        assert [p.player_id for p in pairing.team_b] == [3, 4]


class TestCandidateMatches:
    """Tests for the sorted candidate list."""

    def test_sorted_by_diff(self):
        """Test candidates are ordered by ascending diff."""
        pool = deterministic_order(roster(50.0, 40.0, 30.0, 20.0, 10.0, 5.0, 3.0, 1.0))
        candidates = candidate_matches(pool, {})
        diffs = [c.diff for c in candidates]
        assert diffs == sorted(diffs)
        assert len(candidates) == 70


class TestGeneratePairings:
    """Tests for full-round generation."""

    def test_four_players(self):
        """Test four players make one match."""
        result = generate_pairings(roster(40.0, 30.0, 20.0, 10.0), {})
        assert len(result) == 1
        assert result[0].player_ids == frozenset({1, 2, 3, 4})

    def test_every_player_placed_once(self):
        """Test each player appears in exactly one match."""
        players = roster(*[float(x) for x in range(20, 36)])
        result = generate_pairings(players, {})
        placed = [pid for pairing in result for pid in pairing.player_ids]
        assert len(result) == 4
        assert sorted(placed) == list(range(1, 17))

    def test_deterministic(self):
        """Test identical inputs give identical rounds regardless of input order."""
        players = roster(33.0, 21.0, 27.0, 25.0, 30.0, 19.0, 24.0, 28.0)
        first = generate_pairings(players, {})
        second = generate_pairings(list(reversed(players)), {})
        assert first == second

    def test_respects_history(self):
        """Test no returned team repeats a prior partnership."""
        players = roster(33.0, 21.0, 27.0, 25.0, 30.0, 19.0, 24.0, 28.0)
        history = {1: {5}, 5: {1}, 3: {8}, 8: {3}, 2: {6}, 6: {2}}
        result = generate_pairings(players, history)
        assert result is not None
        for team in partnerships(result):
            a, b = tuple(team)
            assert b not in history.get(a, set())

    def test_backtracks_past_greedy_choice(self):
        """Test the search backtracks when the best first match strands the rest."""
        players = roster(40.0, 39.0, 38.0, 37.0, 10.0, 9.0, 8.0, 7.0)
        # Players 5-8 have all partnered each other, so they must be split up.
        history = {
            pid: {other for other in (5, 6, 7, 8) if other != pid} for pid in (5, 6, 7, 8)
        }
        result = generate_pairings(players, history)
        assert result is not None
        for team in partnerships(result):
            assert len(team & {5, 6, 7, 8}) <= 1

    def test_no_solution_returns_none(self):
        """Test None when every complete assignment repeats a partnership."""
        players = roster(25.0, 25.0, 25.0, 25.0)
        history = {1: {2, 3, 4}, 2: {1, 3, 4}, 3: {1, 2, 4}, 4: {1, 2, 3}}
        assert generate_pairings(players, history) is None

    def test_exhausts_round_robin(self):
        """Test three rounds of four players use all three splits, then fail."""
        players = roster(30.0, 28.0, 22.0, 20.0)
        history: dict[int, set[int]] = {}
        seen = set()
        for _ in range(3):
            result = generate_pairings(players, history)
            assert result is not None
            for team in partnerships(result):
                a, b = tuple(team)
                history.setdefault(a, set()).add(b)
                history.setdefault(b, set()).add(a)
                seen.add(team)
        assert seen == {frozenset(c) for c in combinations(range(1, 5), 2)}
        assert generate_pairings(players, history) is None

    @pytest.mark.parametrize("count", [0, 3, 5, 6])
    def test_invalid_count(self, count):
        """Test rosters that are empty or not a multiple of four are rejected."""
        with pytest.raises(ValueError, match="multiple of 4"):
            generate_pairings(roster(*[25.0] * count), {})

    def test_duplicate_ids(self):
        """Test duplicate player ids are rejected."""
        players = roster(25.0, 25.0, 25.0) + [StandingsEntry(player_id=1, rating=25.0)]
        with pytest.raises(ValueError, match="Duplicate"):
            generate_pairings(players, {})
