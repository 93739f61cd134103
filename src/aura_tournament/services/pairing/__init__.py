from .generator import (
    PLAYERS_PER_MATCH,
    TeammateHistory,
    TeamPairing,
    best_split,
    candidate_matches,
    deterministic_order,
    generate_pairings,
    have_partnered,
)
from .service import PairingService, RoundResult, ScheduledMatch, next_round_number

__all__ = [
    "PLAYERS_PER_MATCH",
    "PairingService",
    "RoundResult",
    "ScheduledMatch",
    "TeamPairing",
    "TeammateHistory",
    "best_split",
    "candidate_matches",
    "deterministic_order",
    "generate_pairings",
    "have_partnered",
    "next_round_number",
]
