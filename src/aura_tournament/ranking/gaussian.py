"""Gaussian skill helpers shared by the rating update and live win probability."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class PlayerSkill:
    """Skill estimate for one player.

    Attributes:
        player_id: Player identifier.
        mu: Mean skill estimate.
        sigma: Uncertainty in skill estimate.
    """

    player_id: int
    mu: float
    sigma: float


@dataclass(frozen=True)
class TeamSkill:
    """Aggregated skill of a team: mean of mu, root-mean-square of sigma."""

    mu: float
    sigma: float


def phi(t: float) -> float:
    """Standard normal CDF."""
    return 0.5 * (1.0 + math.erf(t / math.sqrt(2.0)))


def team_skill(team: Sequence[PlayerSkill]) -> TeamSkill:
    """Aggregate player skills into a team's effective skill.

    For a two-player team this is mean(mu) and sqrt((sigma1^2 + sigma2^2) / 2).

    Raises:
        ValueError: If the team is empty.
    """
    if not team:
        msg = "A team needs at least one player"
        raise ValueError(msg)
    mu = sum(p.mu for p in team) / len(team)
    sigma = math.sqrt(sum(p.sigma**2 for p in team) / len(team))
    return TeamSkill(mu=mu, sigma=sigma)
