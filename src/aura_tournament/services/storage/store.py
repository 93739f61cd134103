"""Unified persistence layer for the tournament core."""

from __future__ import annotations

import asyncio

import structlog
from sqlalchemy import event
from sqlalchemy.pool import NullPool, StaticPool
from sqlmodel import SQLModel, create_engine

# Registers every table on SQLModel.metadata.
from aura_tournament import models  # noqa: F401
from aura_tournament.core.config import AuraConfig

from .match_repository import MatchRepository
from .rating_repository import RatingRepository
from .score_repository import ScoreRepository
from .tournament_repository import TournamentRepository

logger = structlog.get_logger()


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_memory(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


class TournamentStore:
    """Owns the database engine and the repositories built on it.

    Handles:
    - Engine creation and table setup
    - Tournament, match, score and rating repositories sharing one engine
    """

    def __init__(self, config: AuraConfig, database_url: str | None = None) -> None:
        """Initialize the store.

        Args:
            config: Core configuration.
            database_url: Overrides config.get_database_url().
        """
        self.config = config
        self.database_url = database_url or config.get_database_url()
        self._engine = self._create_engine(self.database_url)
        SQLModel.metadata.create_all(self._engine)
        logger.info("store_init", database_url=self.database_url)

        self.tournaments = TournamentRepository(self._engine)
        self.matches = MatchRepository(self._engine)
        self.scores = ScoreRepository(self._engine)
        self.ratings = RatingRepository(self._engine)

    @staticmethod
    def _create_engine(url: str):
        if not _is_sqlite(url):
            return create_engine(url, pool_pre_ping=True)

        connect_args = {"check_same_thread": False}
        # One shared connection keeps an in-memory database alive across sessions.
        poolclass = StaticPool if _is_memory(url) else NullPool
        engine = create_engine(url, connect_args=connect_args, poolclass=poolclass)

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    async def close(self) -> None:
        """Dispose of the engine's connections."""
        await asyncio.to_thread(self._engine.dispose)
        logger.info("store_closed")
