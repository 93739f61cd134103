"""Database persistence for match status, team rosters and scoring transitions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog
from sqlmodel import Session, col, select

from aura_tournament.core.errors import NotFoundError, ValidationError
from aura_tournament.models import Match, MatchStatus, ScoreSnapshot, Team, TeamMember
from aura_tournament.ranking import RatingUpdate

from .rating_repository import rated_after, revert_rating_updates, write_rating_updates
from .repository import AsyncRepository
from .score_repository import append_snapshot, delete_snapshots, latest_snapshot

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


@dataclass(frozen=True)
class MatchContext:
    """A match with its two teams resolved. Team A is the lower team id.

    Attributes:
        match_id: Match identifier.
        tournament_id: Owning tournament.
        round: Round number.
        status: Current MatchStatus value.
        team_a_id: Lower of the two team ids.
        team_b_id: Higher of the two team ids.
        winner_team_id: Winning team once completed.
    """

    match_id: int
    tournament_id: int
    round: int
    status: MatchStatus
    team_a_id: int
    team_b_id: int
    winner_team_id: int | None = None

    @property
    def team_ids(self) -> tuple[int, int]:
        return self.team_a_id, self.team_b_id


def _get_match(session: Session, match_id: int) -> Match:
    match = session.get(Match, match_id)
    if match is None:
        raise NotFoundError("Match", match_id)
    return match


def _check_reopenable(session: Session, match: Match) -> None:
    """A completed match can only be reopened while nothing has built on it."""
    later_round = session.exec(
        select(Match.id)
        .where(Match.tournament_id == match.tournament_id)
        .where(Match.round > match.round)
        .limit(1)
    ).first()
    if later_round is not None or rated_after(session, match.id):
        raise ValidationError(
            f"Cannot reopen match {match.id}: later matches already depend on its result",
            offending_id=match.id,
        )


class MatchRepository(AsyncRepository):
    """Persist and query matches, their teams and scoring transitions.

    Every transition that touches more than one row commits once.
    """

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def get_context(self, match_id: int) -> MatchContext:
        """Load a match and its teams.

        Raises:
            NotFoundError: If the match does not exist.
            ValidationError: If the match does not have exactly two teams.
        """

        def _get(session: Session) -> MatchContext:
            match = _get_match(session, match_id)
            statement = (
                select(Team.id).where(Team.match_id == match_id).order_by(col(Team.id))
            )
            team_ids = list(session.exec(statement).all())
            if len(team_ids) != 2:
                raise ValidationError(
                    f"Match {match_id} has {len(team_ids)} teams; expected 2",
                    offending_id=match_id,
                )
            return MatchContext(
                match_id=match_id,
                tournament_id=match.tournament_id,
                round=match.round,
                status=MatchStatus(match.status),
                team_a_id=team_ids[0],
                team_b_id=team_ids[1],
                winner_team_id=match.winner_team_id,
            )

        return await self._run_session(_get, "get_match_context")

    async def get_match(self, match_id: int) -> Match:
        """Get the raw match row.

        Raises:
            NotFoundError: If the match does not exist.
        """

        def _get(session: Session) -> Match:
            return _get_match(session, match_id)

        return await self._run_session(_get, "get_match")

    async def get_team_members(self, team_id: int) -> list[int]:
        """Player ids on a team's roster."""

        def _get(session: Session) -> list[int]:
            if session.get(Team, team_id) is None:
                raise NotFoundError("Team", team_id)
            statement = (
                select(TeamMember.player_id)
                .where(TeamMember.team_id == team_id)
                .order_by(col(TeamMember.id))
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get, "get_team_members")

    async def start_match(self, match_id: int, snapshot: ScoreSnapshot) -> ScoreSnapshot:
        """Clear prior snapshots, write the opening snapshot and mark in progress."""

        def _start(session: Session) -> ScoreSnapshot:
            match = _get_match(session, match_id)
            removed = delete_snapshots(session, match_id)
            session.flush()
            append_snapshot(session, snapshot)
            match.status = MatchStatus.IN_PROGRESS.value
            match.start_time = datetime.now(UTC)
            match.winner_team_id = None
            match.end_time = None
            session.add(match)
            session.commit()
            session.refresh(snapshot)
            if removed:
                logger.info("stale_snapshots_cleared", match_id=match_id, removed=removed)
            return snapshot

        return await self._run_session(_start, "start_match")

    async def complete_match(
        self,
        match_id: int,
        snapshot: ScoreSnapshot,
        winner_team_id: int,
        rating_updates: Sequence[RatingUpdate],
    ) -> ScoreSnapshot:
        """Write the winning snapshot, the result and all rating changes at once."""

        def _complete(session: Session) -> ScoreSnapshot:
            match = _get_match(session, match_id)
            append_snapshot(session, snapshot)
            match.status = MatchStatus.COMPLETED.value
            match.winner_team_id = winner_team_id
            match.end_time = datetime.now(UTC)
            session.add(match)
            write_rating_updates(session, match_id, rating_updates)
            session.commit()
            session.refresh(snapshot)
            return snapshot

        return await self._run_session(_complete, "complete_match")

    async def undo_latest(
        self, match_id: int, expected_snapshot_id: int, reopen: bool
    ) -> ScoreSnapshot:
        """Delete the newest snapshot and optionally return the match to play.

        Args:
            match_id: Match identifier.
            expected_snapshot_id: The snapshot the caller decided to pop.
            reopen: Force status back to in progress and clear the result.
                A completed match also has its rating changes reverted.

        Returns:
            The snapshot that is live after the pop.

        Raises:
            ValidationError: If the log changed since the caller read it, only
                the opening snapshot remains, or a completed match is reopened
                after a later round was generated or its players were rated again.
        """

        def _undo(session: Session) -> ScoreSnapshot:
            match = _get_match(session, match_id)
            newest = latest_snapshot(session, match_id)
            if newest is None or newest.id != expected_snapshot_id:
                raise ValidationError(
                    f"Score log of match {match_id} changed during undo",
                    offending_id=match_id,
                )
            if reopen and match.status == MatchStatus.COMPLETED.value:
                _check_reopenable(session, match)
            session.delete(newest)
            session.flush()
            current = latest_snapshot(session, match_id)
            if current is None:
                raise ValidationError(
                    "Cannot undo. Match is at start state.", offending_id=match_id
                )
            if reopen:
                if match.status == MatchStatus.COMPLETED.value:
                    reverted = revert_rating_updates(session, match_id)
                    logger.info("ratings_reverted", match_id=match_id, entries=reverted)
                match.status = MatchStatus.IN_PROGRESS.value
                match.winner_team_id = None
                match.end_time = None
                session.add(match)
            session.commit()
            session.refresh(current)
            return current

        return await self._run_session(_undo, "undo_latest_snapshot")
