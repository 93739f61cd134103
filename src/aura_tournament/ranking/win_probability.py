"""Live match win probability for an in-progress game.

The estimate blends a skill-only per-point probability with a momentum term
from the live score, then converts that per-point probability into a game
win probability under rally scoring to a target with a win-by margin. The
per-point probability is treated as uncertain: draws from a Beta centred on
the blend are each converted and averaged, which smooths the curve.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np
import structlog

from aura_tournament.core.config import ScoringConfig, WinProbabilityConfig
from aura_tournament.ranking.gaussian import PlayerSkill, phi, team_skill

logger = structlog.get_logger()

_EPSILON = 1e-6


class WinProbabilityEstimator:
    """Estimate Team A's chance of winning from skills and the live score.

    Attributes:
        config: Blend and sampling parameters.
        scoring: Game rules (target and win-by margin).
    """

    def __init__(
        self,
        config: WinProbabilityConfig | None = None,
        scoring: ScoringConfig | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        """Initialize the estimator.

        Args:
            config: Blend and sampling parameters.
            scoring: Game rules.
            rng: Random generator for the Beta draws. Defaults to a generator
                seeded from config.seed (fresh entropy when the seed is None).
        """
        self.config = config or WinProbabilityConfig()
        self.scoring = scoring or ScoringConfig()
        self._rng = rng if rng is not None else np.random.default_rng(self.config.seed)

    def base_point_probability(
        self, team_a: Sequence[PlayerSkill], team_b: Sequence[PlayerSkill]
    ) -> float:
        """Per-point probability that Team A wins a rally, from skill alone."""
        a = team_skill(team_a)
        b = team_skill(team_b)
        combined_std = math.sqrt(a.sigma**2 + b.sigma**2)
        if combined_std == 0:
            return 0.5
        return phi((a.mu - b.mu) / (math.sqrt(2.0) * combined_std))

    def momentum(self, score_a: int, score_b: int) -> float:
        """Per-point probability implied by the live score alone.

        Centred on 0.5 and bounded by the configured amplitude. A lead counts
        for more the fewer points remain to be played.
        """
        target = self.scoring.points_to_win
        remaining = max(0, target - score_a) + max(0, target - score_b)
        rem = max(1, remaining)
        swing = math.tanh((score_a - score_b) / (rem * self.config.momentum_scale))
        return 0.5 + self.config.momentum_amplitude * swing

    def blended_point_probability(
        self,
        team_a: Sequence[PlayerSkill],
        team_b: Sequence[PlayerSkill],
        score_a: int,
        score_b: int,
    ) -> float:
        """Weighted blend of the skill and momentum per-point probabilities."""
        w = self.config.skill_weight
        base = self.base_point_probability(team_a, team_b)
        return w * base + (1.0 - w) * self.momentum(score_a, score_b)

    def winner(self, score_a: int, score_b: int) -> str | None:
        """Return "A" or "B" once a side has clinched the game, else None."""
        target = self.scoring.points_to_win
        win_by = self.scoring.win_by
        if score_a >= target and score_a - score_b >= win_by:
            return "A"
        if score_b >= target and score_b - score_a >= win_by:
            return "B"
        return None

    def game_win_probability(self, p: float, score_a: int, score_b: int) -> float:
        """Probability that Team A wins from (score_a, score_b) with fixed p per rally."""
        return self._game_win(p, score_a, score_b, {})

    def estimate(
        self,
        team_a: Sequence[PlayerSkill],
        team_b: Sequence[PlayerSkill],
        score_a: int,
        score_b: int,
        rng: np.random.Generator | None = None,
    ) -> float:
        """Team A's live match win probability.

        Args:
            team_a: Team A's current players.
            team_b: Team B's current players.
            score_a: Team A's live score.
            score_b: Team B's live score.
            rng: Generator for this call only. Defaults to the estimator's own.

        Returns:
            Probability in [0, 1].
        """
        decided = self.winner(score_a, score_b)
        if decided is not None:
            return 1.0 if decided == "A" else 0.0

        p_blend = self.blended_point_probability(team_a, team_b, score_a, score_b)
        return self.sample_win_probability(p_blend, score_a, score_b, rng=rng)

    def sample_win_probability(
        self,
        p_blend: float,
        score_a: int,
        score_b: int,
        rng: np.random.Generator | None = None,
    ) -> float:
        """Average game win probability over Beta draws centred on p_blend."""
        generator = rng if rng is not None else self._rng
        phi_ = self.config.concentration
        alpha = max(_EPSILON, p_blend * phi_)
        beta = max(_EPSILON, (1.0 - p_blend) * phi_)
        draws = generator.beta(alpha, beta, size=self.config.samples)

        memo: dict[tuple[float, int, int], float] = {}
        values = [self._game_win(float(p), score_a, score_b, memo) for p in draws]
        result = float(np.mean(values))
        logger.debug(
            "win_probability_sampled",
            p_blend=round(p_blend, 4),
            score_a=score_a,
            score_b=score_b,
            result=round(result, 4),
        )
        return result

    def _game_win(
        self,
        p: float,
        a: int,
        b: int,
        memo: dict[tuple[float, int, int], float],
    ) -> float:
        decided = self.winner(a, b)
        if decided is not None:
            return 1.0 if decided == "A" else 0.0

        key = (p, a, b)
        cached = memo.get(key)
        if cached is not None:
            return cached

        if min(a, b) >= self.scoring.points_to_win - 1:
            result = self._endgame(p, a - b)
        else:
            result = p * self._game_win(p, a + 1, b, memo) + (1.0 - p) * self._game_win(
                p, a, b + 1, memo
            )
        memo[key] = result
        return result

    def _endgame(self, p: float, lead: int) -> float:
        """Closed form once both sides are one point from the target.

        Only the lead matters from here: Team A needs to reach +win_by before
        Team B does. With win_by == 2 and level scores this is
        p^2 / (p^2 + (1 - p)^2).

        A one-point lead such as 11-10 is not treated as level: it gets its
        own exact value, p + (1 - p) * level for win_by == 2, rather than the
        level-score formula.
        """
        k = self.scoring.win_by
        if p <= 0.0:
            return 0.0
        if p >= 1.0:
            return 1.0
        r = (1.0 - p) / p
        if abs(r - 1.0) < 1e-12:
            return (lead + k) / (2 * k)
        return (1.0 - r ** (lead + k)) / (1.0 - r ** (2 * k))
