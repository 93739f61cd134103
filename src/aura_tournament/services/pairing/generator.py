"""Balanced doubles pairing for one tournament round.

Every group of four players can be split into two teams three ways. For each
group the best split that repeats no prior partnership becomes a candidate
match, scored by how far apart the two teams' composite scores are
(rating + points * point_scale_factor per player). Candidates are tried
best-first with backtracking until the whole roster is placed.

Players are sorted by (points desc, rating desc, id asc) before any
combination is built, so identical inputs always produce identical rounds.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence, Set
from dataclasses import dataclass
from itertools import combinations

import structlog

from aura_tournament.models.standings import StandingsEntry

logger = structlog.get_logger()

PLAYERS_PER_MATCH = 4

TeammateHistory = Mapping[int, Set[int]]


@dataclass(frozen=True)
class TeamPairing:
    """One match of a generated round.

    Team A is always created first when persisted, so it receives the lower
    team id downstream.

    Attributes:
        team_a: Team A's two players.
        team_b: Team B's two players.
        diff: Composite-score difference used for ranking candidates.
        real_diff: Difference of the teams' mean ratings, for reporting.
    """

    team_a: tuple[StandingsEntry, StandingsEntry]
    team_b: tuple[StandingsEntry, StandingsEntry]
    diff: float
    real_diff: float

    @property
    def player_ids(self) -> frozenset[int]:
        return frozenset(p.player_id for p in (*self.team_a, *self.team_b))


def deterministic_order(players: Iterable[StandingsEntry]) -> tuple[StandingsEntry, ...]:
    """Sort by points desc, rating desc, then id asc."""
    return tuple(sorted(players, key=lambda p: (-p.points, -p.rating, p.player_id)))


def have_partnered(history: TeammateHistory, a: StandingsEntry, b: StandingsEntry) -> bool:
    return b.player_id in history.get(a.player_id, ())


def best_split(
    group: Sequence[StandingsEntry],
    history: TeammateHistory,
    point_scale_factor: float = 100.0,
) -> TeamPairing | None:
    """Pick the most balanced valid 2v2 split of a four-player group.

    Args:
        group: Four players in deterministic order.
        history: Prior partnerships; a split repeating one is rejected.
        point_scale_factor: Weight of standings points in the composite score.

    Returns:
        The split with the lowest composite difference (first wins ties), or
        None if every split repeats a partnership.
    """
    p1, p2, p3, p4 = group
    splits = (
        ((p1, p2), (p3, p4)),
        ((p1, p3), (p2, p4)),
        ((p1, p4), (p2, p3)),
    )

    def composite(p: StandingsEntry) -> float:
        return p.rating + p.points * point_scale_factor

    best: TeamPairing | None = None
    for team_a, team_b in splits:
        if have_partnered(history, *team_a) or have_partnered(history, *team_b):
            continue
        diff = abs(
            (composite(team_a[0]) + composite(team_a[1]))
            - (composite(team_b[0]) + composite(team_b[1]))
        )
        if best is None or diff < best.diff:
            real_diff = abs(
                (team_a[0].rating + team_a[1].rating) / 2
                - (team_b[0].rating + team_b[1].rating) / 2
            )
            best = TeamPairing(team_a=team_a, team_b=team_b, diff=diff, real_diff=real_diff)
    return best


def candidate_matches(
    pool: Sequence[StandingsEntry],
    history: TeammateHistory,
    point_scale_factor: float = 100.0,
) -> tuple[TeamPairing, ...]:
    """Best split of every four-player group, sorted ascending by diff.

    The sort is stable, so equal diffs keep combination order.
    """
    candidates = []
    for group in combinations(pool, PLAYERS_PER_MATCH):
        pairing = best_split(group, history, point_scale_factor)
        if pairing is not None:
            candidates.append(pairing)
    candidates.sort(key=lambda c: c.diff)
    return tuple(candidates)


def generate_pairings(
    players: Sequence[StandingsEntry],
    history: TeammateHistory,
    point_scale_factor: float = 100.0,
) -> list[TeamPairing] | None:
    """Generate one round of doubles pairings.

    Candidates are computed once over the sorted roster. Each recursion frame
    only carries the set of player ids already placed; a candidate is usable
    when none of its players is in that set. Because combinations of a sorted
    sub-pool come out in the same relative order as in the full pool, this
    visits candidates exactly as re-enumerating the remaining pool would.

    Args:
        players: Roster with ratings and standings points.
        history: Prior partnerships (player id -> partner ids).
        point_scale_factor: Weight of standings points in the composite score.

    Returns:
        len(players) / 4 pairings, or None when no complete assignment exists.

    Raises:
        ValueError: If the roster is empty or not a multiple of four, or has
            duplicate player ids.
    """
    if not players or len(players) % PLAYERS_PER_MATCH != 0:
        msg = f"Player count must be a positive multiple of 4, got {len(players)}"
        raise ValueError(msg)
    if len({p.player_id for p in players}) != len(players):
        msg = "Duplicate player ids in roster"
        raise ValueError(msg)

    pool = deterministic_order(players)
    candidates = candidate_matches(pool, history, point_scale_factor)
    total = len(pool)
    dead_ends: set[frozenset[int]] = set()

    def solve(used: frozenset[int]) -> tuple[TeamPairing, ...] | None:
        if len(used) == total:
            return ()
        if used in dead_ends:
            return None
        for candidate in candidates:
            if used & candidate.player_ids:
                continue
            rest = solve(used | candidate.player_ids)
            if rest is not None:
                return (candidate, *rest)
        dead_ends.add(used)
        return None

    result = solve(frozenset())
    logger.debug(
        "pairing_search_complete",
        players=total,
        candidates=len(candidates),
        dead_ends=len(dead_ends),
        found=result is not None,
    )
    return list(result) if result is not None else None
