"""Rating and win-probability engine.

Provides the post-match rating model and the live win-probability estimator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from aura_tournament.ranking.gaussian import PlayerSkill, TeamSkill, phi, team_skill
from aura_tournament.ranking.rating_model import (
    AuraRatingModel,
    MatchRatingResult,
    RatingUpdate,
)
from aura_tournament.ranking.win_probability import WinProbabilityEstimator

if TYPE_CHECKING:
    from aura_tournament.core.config import AuraConfig


def create_rating_model(config: AuraConfig) -> AuraRatingModel:
    """Create the rating model from config."""
    return AuraRatingModel(config.rating)


def create_win_probability_estimator(config: AuraConfig) -> WinProbabilityEstimator:
    """Create the live win-probability estimator from config."""
    return WinProbabilityEstimator(config.win_probability, config.scoring)


__all__ = [
    "AuraRatingModel",
    "MatchRatingResult",
    "PlayerSkill",
    "RatingUpdate",
    "TeamSkill",
    "WinProbabilityEstimator",
    "create_rating_model",
    "create_win_probability_estimator",
    "phi",
    "team_skill",
]
