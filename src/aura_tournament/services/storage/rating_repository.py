"""Database persistence for player ratings and rating history."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlmodel import Session, col, select

from aura_tournament.models import PlayerRating, RatingHistoryEntry
from aura_tournament.ranking import RatingUpdate

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine


def write_rating_updates(
    session: Session, match_id: int, updates: Sequence[RatingUpdate]
) -> None:
    """Upsert ratings and append history rows in the caller's transaction."""
    now = datetime.now(UTC)
    for update in updates:
        rating = session.get(PlayerRating, update.player_id)
        if rating is None:
            rating = PlayerRating(player_id=update.player_id)
        rating.mu = update.new_mu
        rating.sigma = update.new_sigma
        rating.last_updated = now
        session.add(rating)
        session.add(
            RatingHistoryEntry(
                player_id=update.player_id,
                match_id=match_id,
                old_mu=update.old_mu,
                old_sigma=update.old_sigma,
                new_mu=update.new_mu,
                new_sigma=update.new_sigma,
                created_at=now,
            )
        )


def rated_after(session: Session, match_id: int) -> bool:
    """Whether any player of a rated match has history written after it."""
    entries = session.exec(
        select(RatingHistoryEntry).where(RatingHistoryEntry.match_id == match_id)
    ).all()
    if not entries:
        return False
    last_id = max(entry.id for entry in entries)
    statement = (
        select(RatingHistoryEntry.id)
        .where(col(RatingHistoryEntry.player_id).in_([e.player_id for e in entries]))
        .where(col(RatingHistoryEntry.id) > last_id)
        .limit(1)
    )
    return session.exec(statement).first() is not None


def revert_rating_updates(session: Session, match_id: int) -> int:
    """Restore ratings from a match's history rows and delete them.

    Returns:
        Number of history rows reverted.
    """
    statement = (
        select(RatingHistoryEntry)
        .where(RatingHistoryEntry.match_id == match_id)
        .order_by(col(RatingHistoryEntry.id).desc())
    )
    entries = session.exec(statement).all()
    now = datetime.now(UTC)
    for entry in entries:
        rating = session.get(PlayerRating, entry.player_id)
        if rating is not None:
            rating.mu = entry.old_mu
            rating.sigma = entry.old_sigma
            rating.last_updated = now
            session.add(rating)
        session.delete(entry)
    return len(entries)


class RatingRepository(AsyncRepository):
    """Persist and query player ratings."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def get_ratings(self, player_ids: Iterable[int]) -> dict[int, PlayerRating]:
        """Get rating rows for the given players. Players without a row are omitted."""
        ids = list(player_ids)

        def _get(session: Session) -> dict[int, PlayerRating]:
            statement = select(PlayerRating).where(col(PlayerRating.player_id).in_(ids))
            return {r.player_id: r for r in session.exec(statement).all()}

        return await self._run_session(_get, "get_ratings")

    async def get_history(self, player_id: int) -> list[RatingHistoryEntry]:
        """Get a player's rating history, oldest first."""

        def _get(session: Session) -> list[RatingHistoryEntry]:
            statement = (
                select(RatingHistoryEntry)
                .where(RatingHistoryEntry.player_id == player_id)
                .order_by(col(RatingHistoryEntry.id))
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get, "get_rating_history")

    async def get_match_history(self, match_id: int) -> list[RatingHistoryEntry]:
        """Get the history rows written for one match."""

        def _get(session: Session) -> list[RatingHistoryEntry]:
            statement = (
                select(RatingHistoryEntry)
                .where(RatingHistoryEntry.match_id == match_id)
                .order_by(col(RatingHistoryEntry.id))
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get, "get_match_rating_history")
