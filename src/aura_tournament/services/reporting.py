"""Markdown reports for standings, partnerships and generated rounds."""

from __future__ import annotations

from collections.abc import Mapping, Sequence, Set

from tabulate import tabulate

from aura_tournament.models import StandingsEntry
from aura_tournament.services.pairing import RoundResult, deterministic_order


def generate_leaderboard(
    standings: Sequence[StandingsEntry],
    title: str = "Leaderboard",
) -> str:
    """Render standings in pairing order (points, then rating, then id).

    Args:
        standings: Entries from the tournament repository.
        title: Report title (markdown heading).

    Returns:
        Markdown report content.
    """
    rows = [
        (rank, entry.label, entry.rating, entry.points)
        for rank, entry in enumerate(deterministic_order(standings), start=1)
    ]
    lines = [f"# {title}", ""]
    lines.append(
        tabulate(
            rows,
            headers=("Rank", "Player", "Rating", "Points"),
            tablefmt="github",
            floatfmt=("g", "g", ".2f", "g"),
        )
    )
    return "\n".join(lines)


def generate_teammate_report(
    history: Mapping[int, Set[int]],
    names: Mapping[int, str] | None = None,
) -> str:
    """One line per player listing everyone they have partnered."""
    names = names or {}

    def label(player_id: int) -> str:
        return names.get(player_id) or f"Player {player_id}"

    rows = [
        (label(player_id), ", ".join(label(p) for p in sorted(partners)) or "-")
        for player_id, partners in sorted(history.items())
    ]
    lines = ["# Teammate History", ""]
    lines.append(tabulate(rows, headers=("Player", "Partners"), tablefmt="github"))
    return "\n".join(lines)


def generate_round_report(result: RoundResult) -> str:
    """One row per scheduled match of a generated round."""
    rows = []
    for scheduled in result.matches:
        pairing = scheduled.pairing
        rows.append(
            (
                scheduled.match.match_id,
                " & ".join(p.label for p in pairing.team_a),
                " & ".join(p.label for p in pairing.team_b),
                pairing.real_diff,
            )
        )

    lines = [f"# Round {result.round_number}", ""]
    lines.append(
        tabulate(
            rows,
            headers=("Match", "Team A", "Team B", "Skill diff"),
            tablefmt="github",
            floatfmt=".2f",
        )
    )
    return "\n".join(lines)
