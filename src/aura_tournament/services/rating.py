"""Rating lookups, post-match updates and live win probability."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from aura_tournament.models import RatingHistoryEntry
from aura_tournament.ranking import (
    AuraRatingModel,
    MatchRatingResult,
    PlayerSkill,
    WinProbabilityEstimator,
)
from aura_tournament.services.storage import TournamentStore

logger = structlog.get_logger()


class RatingService:
    """Bridge the rating engine and the rating tables.

    Players without a rating row are treated as new players with the
    configured default skill.
    """

    def __init__(
        self,
        store: TournamentStore,
        model: AuraRatingModel,
        estimator: WinProbabilityEstimator,
    ) -> None:
        self.store = store
        self.model = model
        self.estimator = estimator

    async def load_skills(self, player_ids: Sequence[int]) -> dict[int, PlayerSkill]:
        """Current skill for each player id, defaulting missing rows."""
        rows = await self.store.ratings.get_ratings(player_ids)
        skills = {}
        for player_id in player_ids:
            row = rows.get(player_id)
            if row is None:
                skills[player_id] = self.model.default_skill(player_id)
            else:
                skills[player_id] = PlayerSkill(player_id, row.mu, row.sigma)
        return skills

    async def rate_match(
        self,
        team_a: Sequence[int],
        team_b: Sequence[int],
        score_a: int,
        score_b: int,
    ) -> MatchRatingResult:
        """Compute, without persisting, the rating changes of a finished match."""
        skills = await self.load_skills([*team_a, *team_b])
        result = self.model.rate(
            [skills[p] for p in team_a],
            [skills[p] for p in team_b],
            score_a,
            score_b,
        )
        logger.info(
            "match_rated",
            expected_a=round(result.expected_a, 4),
            actual_a=result.actual_a,
            margin=round(result.margin_multiplier, 4),
            team_delta_a=round(result.team_delta_a, 4),
        )
        return result

    async def live_win_probability(
        self,
        team_a: Sequence[int],
        team_b: Sequence[int],
        score_a: int,
        score_b: int,
    ) -> float:
        """Team A's live win probability for the given players and score."""
        skills = await self.load_skills([*team_a, *team_b])
        return self.estimator.estimate(
            [skills[p] for p in team_a],
            [skills[p] for p in team_b],
            score_a,
            score_b,
        )

    async def get_history(self, player_id: int) -> list[RatingHistoryEntry]:
        return await self.store.ratings.get_history(player_id)
