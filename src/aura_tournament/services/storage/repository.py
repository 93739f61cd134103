"""Shared async repository helpers for SQLModel session work."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, Generic, TypeVar

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from aura_tournament.core.errors import DependencyFailure

if TYPE_CHECKING:
    from sqlalchemy import Engine

T = TypeVar("T")

logger = structlog.get_logger()


class AsyncRepository(Generic[T]):
    """Wrap sync SQLModel session work for async callers.

    Each call runs in its own Session on a worker thread. Uncommitted work is
    rolled back when the session closes, so a failing multi-row write leaves
    nothing behind.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    async def _run_session(self, fn: Callable[[Session], T], operation: str = "") -> T:
        """Run a sync function inside a Session on a worker thread.

        Raises:
            DependencyFailure: If the database raised.
        """

        def _run() -> T:
            with Session(self._engine) as session:
                return fn(session)

        try:
            return await asyncio.to_thread(_run)
        except SQLAlchemyError as e:
            name = operation or getattr(fn, "__name__", "database operation")
            logger.error("database_error", operation=name, error=str(e))
            raise DependencyFailure(name, str(e)) from e
