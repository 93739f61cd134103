"""Configuration schemas and loading for the tournament core."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from aura_tournament.core.errors import ConfigurationError

DATABASE_URL_ENV = "AURA_DATABASE_URL"
DEFAULT_DATABASE_URL = "sqlite:///aura.db"


class RatingConfig(BaseModel):
    """Post-match rating update parameters.

    Attributes:
        initial_mu: Skill mean for players without a rating row.
        initial_sigma: Skill uncertainty for players without a rating row.
        beta: Skill-class width used by the expected-outcome model.
        tau: Base sigma shrink rate per match.
        k_factor: Team-level rating delta scale.
        lambda_uncertainty: Blend between uncertainty and skill split weights.
        softmax_temp: Temperature of the skill softmax.
        max_rating: Upper bound of mu (lower bound is 0).
        gamma_pos: Taper exponent applied to gains.
        gamma_neg: Taper exponent applied to losses.
        sigma_floor: Lowest sigma a player can reach.
        min_sigma_shrink: Lowest multiplier applied to sigma in one match.
        margin_divisor: Points per unit of margin multiplier.
    """

    initial_mu: float = 25.0
    initial_sigma: float = 8.33
    beta: float = Field(default=4.1667, gt=0)
    tau: float = Field(default=0.05, ge=0)
    k_factor: float = Field(default=2.5, gt=0)
    lambda_uncertainty: float = Field(default=0.6, ge=0, le=1)
    softmax_temp: float = Field(default=5.0, gt=0)
    max_rating: float = Field(default=100.0, gt=0)
    gamma_pos: float = 2.0
    gamma_neg: float = 1.0
    sigma_floor: float = Field(default=1.0, gt=0)
    min_sigma_shrink: float = Field(default=0.80, gt=0, le=1)
    margin_divisor: float = Field(default=11.0, gt=0)


class WinProbabilityConfig(BaseModel):
    """Live win-probability estimate parameters.

    Attributes:
        skill_weight: Weight of the skill-only point probability in the blend.
        concentration: Beta-distribution concentration (phi) around the blend.
        samples: Number of per-point probabilities drawn per estimate.
        momentum_amplitude: Maximum swing of the score momentum component.
        momentum_scale: Remaining-points scale inside the momentum tanh.
        seed: Seed for the sampler. None draws fresh entropy per process.
    """

    skill_weight: float = Field(default=0.2, ge=0, le=1)
    concentration: float = Field(default=5.0, gt=0)
    samples: int = Field(default=50, ge=1)
    momentum_amplitude: float = Field(default=0.25, ge=0, le=0.5)
    momentum_scale: float = Field(default=0.6, gt=0)
    seed: int | None = None


class ScoringConfig(BaseModel):
    """Game rules for a single match."""

    points_to_win: int = Field(default=11, ge=1)
    win_by: int = Field(default=2, ge=1)


class PairingConfig(BaseModel):
    """Round generation parameters.

    Attributes:
        point_scale_factor: Weight of standings points in the composite score.
        win_points: Standings points per match won.
        loss_points: Standings points per match lost.
        max_players: Largest roster the exhaustive search accepts.
    """

    point_scale_factor: float = 100.0
    win_points: float = 1.0
    loss_points: float = 0.0
    max_players: int = Field(default=48, ge=4)

    @field_validator("max_players")
    @classmethod
    def validate_multiple_of_four(cls, v: int) -> int:
        if v % 4 != 0:
            msg = "max_players must be a multiple of 4"
            raise ValueError(msg)
        return v


class AuraConfig(BaseModel):
    """Complete configuration for the tournament core."""

    rating: RatingConfig = Field(default_factory=RatingConfig)
    win_probability: WinProbabilityConfig = Field(default_factory=WinProbabilityConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    pairing: PairingConfig = Field(default_factory=PairingConfig)
    database_url: str | None = None

    def get_database_url(self) -> str:
        """Get the database URL from config, environment or default."""
        return self.database_url or os.environ.get(DATABASE_URL_ENV) or DEFAULT_DATABASE_URL


def load_config(path: str | Path | None = None) -> AuraConfig:
    """Load and validate configuration from a YAML file.

    Args:
        path: Path to YAML configuration file. None returns the defaults.

    Returns:
        Validated AuraConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigurationError: If the file is empty or not a mapping.
        pydantic.ValidationError: If a field is invalid.
    """
    if path is None:
        return AuraConfig()

    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f)

    if data is None:
        raise ConfigurationError(
            f"Configuration file is empty: {config_path}",
            "Omit --config to use the defaults, or add at least one section.",
        )
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a mapping at the top of {config_path}",
            "Use sections such as 'rating:', 'scoring:' and 'pairing:'.",
        )

    return AuraConfig.model_validate(data)
