"""Core configuration and errors for the tournament core."""

from aura_tournament.core.config import (
    AuraConfig,
    PairingConfig,
    RatingConfig,
    ScoringConfig,
    WinProbabilityConfig,
    load_config,
)
from aura_tournament.core.errors import (
    ConfigurationError,
    DependencyFailure,
    FatalConstraintFailure,
    NotFoundError,
    TournamentError,
    ValidationError,
)

__all__ = [
    "AuraConfig",
    "PairingConfig",
    "RatingConfig",
    "ScoringConfig",
    "WinProbabilityConfig",
    "load_config",
    "ConfigurationError",
    "DependencyFailure",
    "FatalConstraintFailure",
    "NotFoundError",
    "TournamentError",
    "ValidationError",
]
