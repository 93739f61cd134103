"""Tournament core facade.

Wires the store, rating engine, pairing and scoring services together and
exposes the operations callers use.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import structlog

from aura_tournament.core.config import AuraConfig
from aura_tournament.models import (
    Player,
    RatingHistoryEntry,
    ScoreSnapshot,
    StandingsEntry,
    Tournament,
)
from aura_tournament.ranking import AuraRatingModel, WinProbabilityEstimator
from aura_tournament.services.notifications import MatchNotifier
from aura_tournament.services.pairing import PairingService, RoundResult
from aura_tournament.services.rating import RatingService
from aura_tournament.services.scoring import CourtPositions, ScoringService
from aura_tournament.services.storage import TournamentStore

logger = structlog.get_logger()


class TournamentService:
    """Entry point for tournament setup, round generation and live scoring."""

    def __init__(
        self,
        config: AuraConfig,
        store: TournamentStore,
        notifier: MatchNotifier | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.ratings = RatingService(
            store,
            AuraRatingModel(config.rating),
            WinProbabilityEstimator(config.win_probability, config.scoring, rng=rng),
        )
        self.pairing = PairingService(store, config)
        self.scoring = ScoringService(store, self.ratings, notifier, config.scoring)

    async def create_tournament(self, name: str, total_rounds: int) -> Tournament:
        tournament = await self.store.tournaments.create_tournament(name, total_rounds)
        logger.info("tournament_created", tournament_id=tournament.id, rounds=total_rounds)
        return tournament

    async def add_player(self, username: str) -> Player:
        player = await self.store.tournaments.add_player(username)
        logger.info("player_added", player_id=player.id, username=username)
        return player

    async def register(self, tournament_id: int, player_ids: Sequence[int]) -> int:
        added = await self.store.tournaments.register(tournament_id, player_ids)
        logger.info("players_registered", tournament_id=tournament_id, added=added)
        return added

    async def generate_round(self, tournament_id: int) -> RoundResult:
        return await self.pairing.generate_round(tournament_id)

    async def start_match(
        self, match_id: int, serving_team_id: int, positions: CourtPositions
    ) -> ScoreSnapshot:
        return await self.scoring.start(match_id, serving_team_id, positions)

    async def record_point(self, match_id: int, winning_team_id: int) -> ScoreSnapshot:
        return await self.scoring.record_point(match_id, winning_team_id)

    async def undo_point(self, match_id: int) -> ScoreSnapshot:
        return await self.scoring.undo(match_id)

    async def get_live_state(self, match_id: int) -> ScoreSnapshot:
        return await self.scoring.get_live_state(match_id)

    async def get_win_probability(self, match_id: int) -> float:
        return await self.scoring.get_win_probability(match_id)

    async def get_match_history(self, match_id: int) -> list[ScoreSnapshot]:
        return await self.scoring.get_history(match_id)

    async def get_rating_history(self, player_id: int) -> list[RatingHistoryEntry]:
        return await self.ratings.get_history(player_id)

    async def get_standings(self, tournament_id: int) -> list[StandingsEntry]:
        await self.store.tournaments.get_tournament(tournament_id)
        return await self.store.tournaments.get_standings(
            tournament_id,
            default_mu=self.config.rating.initial_mu,
            win_points=self.config.pairing.win_points,
            loss_points=self.config.pairing.loss_points,
        )

    async def get_teammate_history(self, tournament_id: int) -> dict[int, set[int]]:
        await self.store.tournaments.get_tournament(tournament_id)
        return await self.store.tournaments.get_teammate_history(tournament_id)

    async def close(self) -> None:
        await self.store.close()


def create_service(
    config: AuraConfig,
    database_url: str | None = None,
    notifier: MatchNotifier | None = None,
    rng: np.random.Generator | None = None,
) -> TournamentService:
    """Build a TournamentService on a fresh store.

    Args:
        config: Core configuration.
        database_url: Overrides the configured database URL.
        notifier: Push channel for observers. Events are discarded when None.
        rng: Generator for live win-probability sampling.
    """
    store = TournamentStore(config, database_url)
    return TournamentService(config, store, notifier=notifier, rng=rng)
