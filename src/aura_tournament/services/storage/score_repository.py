"""Database persistence for the per-match score snapshot log."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlmodel import Session, col, select

from aura_tournament.models import ScoreSnapshot

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def latest_snapshot(session: Session, match_id: int) -> ScoreSnapshot | None:
    """Newest snapshot for a match inside the caller's session."""
    statement = (
        select(ScoreSnapshot)
        .where(ScoreSnapshot.match_id == match_id)
        .order_by(col(ScoreSnapshot.created_at).desc(), col(ScoreSnapshot.id).desc())
        .limit(1)
    )
    return session.exec(statement).first()


def append_snapshot(session: Session, snapshot: ScoreSnapshot) -> ScoreSnapshot:
    """Add a snapshot with a created_at strictly after the match's newest one."""
    now = datetime.now(UTC)
    previous = latest_snapshot(session, snapshot.match_id)
    if previous is not None:
        previous_at = _as_utc(previous.created_at)
        if now <= previous_at:
            now = previous_at + timedelta(microseconds=1)
    snapshot.created_at = now
    session.add(snapshot)
    return snapshot


def delete_snapshots(session: Session, match_id: int) -> int:
    """Delete every snapshot of a match. Returns the number removed."""
    rows = session.exec(select(ScoreSnapshot).where(ScoreSnapshot.match_id == match_id)).all()
    for row in rows:
        session.delete(row)
    return len(rows)


class ScoreRepository(AsyncRepository):
    """Append, pop and read score snapshots."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def latest(self, match_id: int) -> ScoreSnapshot | None:
        """Get the live snapshot of a match, or None before it starts."""

        def _get(session: Session) -> ScoreSnapshot | None:
            return latest_snapshot(session, match_id)

        return await self._run_session(_get, "get_latest_snapshot")

    async def list_for_match(self, match_id: int) -> list[ScoreSnapshot]:
        """Get all snapshots of a match, oldest first."""

        def _get(session: Session) -> list[ScoreSnapshot]:
            statement = (
                select(ScoreSnapshot)
                .where(ScoreSnapshot.match_id == match_id)
                .order_by(col(ScoreSnapshot.created_at), col(ScoreSnapshot.id))
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get, "list_snapshots")

    async def count(self, match_id: int) -> int:
        """Number of snapshots recorded for a match."""

        def _count(session: Session) -> int:
            statement = (
                select(func.count())
                .select_from(ScoreSnapshot)
                .where(ScoreSnapshot.match_id == match_id)
            )
            return int(session.exec(statement).one())

        return await self._run_session(_count, "count_snapshots")

    async def append(self, snapshot: ScoreSnapshot) -> ScoreSnapshot:
        """Append a snapshot to its match's log."""

        def _save(session: Session) -> ScoreSnapshot:
            append_snapshot(session, snapshot)
            session.commit()
            session.refresh(snapshot)
            return snapshot

        return await self._run_session(_save, "append_snapshot")
