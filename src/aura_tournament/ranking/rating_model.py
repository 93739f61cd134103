"""Post-match skill rating update for doubles teams.

A Gaussian skill model in the TrueSkill family, tuned for short rally-scored
games:

1. Team A's expected win chance comes from the team skill gap scaled by
   sqrt(2 * (beta^2 + sigmaA^2 + sigmaB^2)).
2. The team delta is K * (actual - expected) * margin multiplier, with the
   opposite delta applied to Team B.
3. Each team's delta is split between its players by blending a variance
   share (uncertain players move more) with a softmax over mu (stronger
   players carry more of the result).
4. Deltas taper as mu approaches the rating bounds, and sigma shrinks a
   little more when the result was surprising.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from aura_tournament.core.config import RatingConfig
from aura_tournament.ranking.gaussian import PlayerSkill, phi, team_skill

_EPSILON = 1e-6


@dataclass(frozen=True)
class RatingUpdate:
    """Before/after skill for one player in one match."""

    player_id: int
    old_mu: float
    old_sigma: float
    new_mu: float
    new_sigma: float

    @property
    def delta(self) -> float:
        return self.new_mu - self.old_mu


@dataclass(frozen=True)
class MatchRatingResult:
    """Outcome of rating one completed match.

    Attributes:
        expected_a: Team A's expected win probability before the match.
        actual_a: 1.0 if Team A scored more, else 0.0.
        margin_multiplier: 1 + |scoreA - scoreB| / margin_divisor.
        team_delta_a: Team A's rating delta before the split and taper.
        team_delta_b: Team B's rating delta, always -team_delta_a.
        team_a: Updates for Team A's players, in input order.
        team_b: Updates for Team B's players, in input order.
    """

    expected_a: float
    actual_a: float
    margin_multiplier: float
    team_delta_a: float
    team_delta_b: float
    team_a: tuple[RatingUpdate, ...]
    team_b: tuple[RatingUpdate, ...]

    @property
    def updates(self) -> tuple[RatingUpdate, ...]:
        return self.team_a + self.team_b


class AuraRatingModel:
    """Rating model that turns a final score into per-player skill updates.

    Attributes:
        config: Model parameters.
    """

    def __init__(self, config: RatingConfig | None = None) -> None:
        """Initialize the rating model.

        Args:
            config: Model parameters. Defaults to RatingConfig().
        """
        self.config = config or RatingConfig()

    def default_skill(self, player_id: int) -> PlayerSkill:
        """Skill assumed for a player with no rating row."""
        return PlayerSkill(
            player_id=player_id,
            mu=self.config.initial_mu,
            sigma=self.config.initial_sigma,
        )

    def expected_win_probability(
        self, team_a: Sequence[PlayerSkill], team_b: Sequence[PlayerSkill]
    ) -> float:
        """Probability that Team A wins the match, from skill alone."""
        a = team_skill(team_a)
        b = team_skill(team_b)
        denom = math.sqrt(2.0 * (self.config.beta**2 + a.sigma**2 + b.sigma**2))
        return phi((a.mu - b.mu) / denom)

    def margin_multiplier(self, score_a: int, score_b: int) -> float:
        return 1.0 + abs(score_a - score_b) / self.config.margin_divisor

    def split_weights(self, team: Sequence[PlayerSkill]) -> list[float]:
        """Share of the team delta assigned to each player (sums to 1)."""
        variances = [max(_EPSILON, p.sigma) ** 2 for p in team]
        total_variance = sum(variances)
        uncertainty = [v / total_variance for v in variances]

        # Shift by the max mu so exp() stays finite for large ratings.
        temp = max(_EPSILON, self.config.softmax_temp)
        top = max(p.mu for p in team)
        exps = [math.exp((p.mu - top) / temp) for p in team]
        total_exp = sum(exps)
        skill = [e / total_exp for e in exps]

        lam = self.config.lambda_uncertainty
        raw = [lam * u + (1.0 - lam) * s for u, s in zip(uncertainty, skill, strict=True)]
        total = sum(raw) or 1.0
        return [w / total for w in raw]

    def taper(self, mu: float, delta: float) -> float:
        """Scale a delta down as mu approaches the bound it moves towards."""
        max_r = self.config.max_rating
        if delta >= 0:
            headroom = min(1.0, max(0.0, (max_r - mu) / max_r))
            return delta * headroom**self.config.gamma_pos
        floor_room = min(1.0, max(0.0, mu / max_r))
        return delta * floor_room**self.config.gamma_neg

    def sigma_multiplier(self, surprise: float) -> float:
        shrink = 1.0 - self.config.tau * (1.0 + 0.5 * surprise)
        return max(self.config.min_sigma_shrink, shrink)

    def rate(
        self,
        team_a: Sequence[PlayerSkill],
        team_b: Sequence[PlayerSkill],
        score_a: int,
        score_b: int,
    ) -> MatchRatingResult:
        """Compute new skills for all players of a completed match.

        Args:
            team_a: Team A's players.
            team_b: Team B's players.
            score_a: Team A's final score.
            score_b: Team B's final score.

        Returns:
            MatchRatingResult with the team-level numbers and per-player updates.
        """
        expected_a = self.expected_win_probability(team_a, team_b)
        actual_a = 1.0 if score_a > score_b else 0.0
        margin = self.margin_multiplier(score_a, score_b)

        team_delta_a = self.config.k_factor * (actual_a - expected_a) * margin
        team_delta_b = -team_delta_a

        sigma_mult = self.sigma_multiplier(abs(actual_a - expected_a))

        return MatchRatingResult(
            expected_a=expected_a,
            actual_a=actual_a,
            margin_multiplier=margin,
            team_delta_a=team_delta_a,
            team_delta_b=team_delta_b,
            team_a=self._apply_team_delta(team_a, team_delta_a, sigma_mult),
            team_b=self._apply_team_delta(team_b, team_delta_b, sigma_mult),
        )

    def _apply_team_delta(
        self,
        team: Sequence[PlayerSkill],
        team_delta: float,
        sigma_mult: float,
    ) -> tuple[RatingUpdate, ...]:
        weights = self.split_weights(team)
        updates = []
        for player, weight in zip(team, weights, strict=True):
            tapered = self.taper(player.mu, team_delta * weight)
            new_mu = min(self.config.max_rating, max(0.0, player.mu + tapered))
            new_sigma = max(self.config.sigma_floor, player.sigma * sigma_mult)
            updates.append(
                RatingUpdate(
                    player_id=player.player_id,
                    old_mu=player.mu,
                    old_sigma=player.sigma,
                    new_mu=new_mu,
                    new_sigma=new_sigma,
                )
            )
        return tuple(updates)
