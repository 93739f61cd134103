"""Persistent records and derived value types."""

from aura_tournament.models.rating import PlayerRating, RatingHistoryEntry
from aura_tournament.models.score import ScoreSnapshot
from aura_tournament.models.standings import StandingsEntry
from aura_tournament.models.tournament import (
    Match,
    MatchStatus,
    Player,
    Registration,
    Team,
    TeamMember,
    Tournament,
)

__all__ = [
    "Match",
    "MatchStatus",
    "Player",
    "PlayerRating",
    "RatingHistoryEntry",
    "Registration",
    "ScoreSnapshot",
    "StandingsEntry",
    "Team",
    "TeamMember",
    "Tournament",
]
