"""Persisted, per-match serialized scoring.

Each call reads the live snapshot, runs the pure transition from
state_machine and writes the result. Calls for the same match are serialized
with an asyncio.Lock; different matches run independently.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict

import structlog

from aura_tournament.core.config import ScoringConfig
from aura_tournament.core.errors import NotFoundError, ValidationError
from aura_tournament.models import MatchStatus, ScoreSnapshot
from aura_tournament.services.notifications import (
    MatchEndEvent,
    MatchEvent,
    MatchNotifier,
    NullNotifier,
    ScoreUpdateEvent,
)
from aura_tournament.services.rating import RatingService
from aura_tournament.services.scoring.state_machine import (
    CourtPositions,
    MatchTeams,
    ScoreLog,
    ScoreState,
    TeamPositions,
    apply_rally,
    winning_team,
)
from aura_tournament.services.storage import MatchContext, TournamentStore

logger = structlog.get_logger()


def snapshot_to_state(snapshot: ScoreSnapshot) -> ScoreState:
    return ScoreState(
        team_a_score=snapshot.team_a_score,
        team_b_score=snapshot.team_b_score,
        serving_team_id=snapshot.serving_team_id,
        server_sequence=snapshot.server_sequence,
        positions=CourtPositions.from_dict(snapshot.positions),
    )


def state_to_snapshot(match_id: int, state: ScoreState) -> ScoreSnapshot:
    return ScoreSnapshot(
        match_id=match_id,
        team_a_score=state.team_a_score,
        team_b_score=state.team_b_score,
        serving_team_id=state.serving_team_id,
        server_sequence=state.server_sequence,
        positions=state.positions.to_dict(),
    )


def _teams(context: MatchContext) -> MatchTeams:
    return MatchTeams(team_a_id=context.team_a_id, team_b_id=context.team_b_id)


class ScoringService:
    """Start, score and undo matches.

    Attributes:
        store: Persistence layer.
        ratings: Rating lookups and post-match updates.
        notifier: Push channel for observers.
        rules: Game target and win-by margin.
    """

    def __init__(
        self,
        store: TournamentStore,
        ratings: RatingService,
        notifier: MatchNotifier | None = None,
        rules: ScoringConfig | None = None,
    ) -> None:
        self.store = store
        self.ratings = ratings
        self.notifier = notifier or NullNotifier()
        self.rules = rules or ScoringConfig()
        self._locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def start(
        self, match_id: int, serving_team_id: int, positions: CourtPositions
    ) -> ScoreSnapshot:
        """Put a scheduled match into play at 0-0.

        Args:
            match_id: Match identifier.
            serving_team_id: Team serving first. Must be one of the match's teams.
            positions: Right/left players for both teams.

        Returns:
            The opening snapshot.

        Raises:
            NotFoundError: If the match does not exist.
            ValidationError: If the match already started or finished, the
                serving team is foreign, or a player is on the wrong team.
        """
        async with self._locks[match_id]:
            context = await self.store.matches.get_context(match_id)
            if context.status != MatchStatus.SCHEDULED:
                raise ValidationError(
                    f"Match {match_id} is {context.status.value}; only scheduled "
                    "matches can be started",
                    offending_id=match_id,
                )
            teams = _teams(context)
            teams.require(serving_team_id)
            await self._validate_positions(teams, positions)

            opening = ScoreState.opening(serving_team_id, positions)
            snapshot = await self.store.matches.start_match(
                match_id, state_to_snapshot(match_id, opening)
            )
            logger.info("match_started", match_id=match_id, serving_team_id=serving_team_id)

        await self._emit_score_update(match_id, snapshot)
        return snapshot

    async def record_point(self, match_id: int, winning_team_id: int) -> ScoreSnapshot:
        """Record one rally and return the new live snapshot.

        A win completes the match, rates the four players on court and
        notifies observers of the result.

        Raises:
            NotFoundError: If the match does not exist.
            ValidationError: If the match is completed or not started, or the
                team is not part of it.
        """
        async with self._locks[match_id]:
            context = await self.store.matches.get_context(match_id)
            if context.status == MatchStatus.COMPLETED:
                raise ValidationError(
                    f"Match {match_id} is already completed", offending_id=match_id
                )
            teams = _teams(context)
            teams.require(winning_team_id)

            latest = await self.store.scores.latest(match_id)
            if latest is None:
                raise ValidationError(
                    f"Match {match_id} has not started", offending_id=match_id
                )

            state = apply_rally(snapshot_to_state(latest), teams, winning_team_id)
            winner = winning_team(state, teams, self.rules)

            if winner is None:
                snapshot = await self.store.scores.append(state_to_snapshot(match_id, state))
                logger.info(
                    "point_recorded",
                    match_id=match_id,
                    team_a=state.team_a_score,
                    team_b=state.team_b_score,
                    serving_team_id=state.serving_team_id,
                    server_sequence=state.server_sequence,
                )
            else:
                result = await self.ratings.rate_match(
                    state.positions.team_a.players,
                    state.positions.team_b.players,
                    state.team_a_score,
                    state.team_b_score,
                )
                snapshot = await self.store.matches.complete_match(
                    match_id, state_to_snapshot(match_id, state), winner, result.updates
                )
                logger.info(
                    "match_completed",
                    match_id=match_id,
                    winner_team_id=winner,
                    team_a=state.team_a_score,
                    team_b=state.team_b_score,
                )

        if winner is None:
            await self._emit_score_update(match_id, snapshot)
        else:
            await self._publish(MatchEndEvent(match_id=match_id, winner_team_id=winner))
        return snapshot

    async def undo(self, match_id: int) -> ScoreSnapshot:
        """Remove the newest snapshot and return the restored one.

        A match whose restored state is not a win goes back in progress with
        its result and rating changes cleared. That is refused once a later
        round exists or its players have been rated in another match.

        Raises:
            NotFoundError: If the match does not exist.
            ValidationError: If the match has not started, is at its opening
                snapshot, or can no longer be reopened.
        """
        async with self._locks[match_id]:
            context = await self.store.matches.get_context(match_id)
            snapshots = await self.store.scores.list_for_match(match_id)
            if not snapshots:
                raise ValidationError(
                    f"Match {match_id} has not started", offending_id=match_id
                )

            log = ScoreLog([snapshot_to_state(s) for s in snapshots])
            try:
                previous = log.undo()
            except ValidationError as e:
                raise ValidationError(e.message, offending_id=match_id) from e

            reopen = winning_team(previous, _teams(context), self.rules) is None
            snapshot = await self.store.matches.undo_latest(
                match_id, snapshots[-1].id, reopen=reopen
            )
            logger.info(
                "point_undone",
                match_id=match_id,
                team_a=snapshot.team_a_score,
                team_b=snapshot.team_b_score,
                reopened=reopen and context.status == MatchStatus.COMPLETED,
            )

        await self._emit_score_update(match_id, snapshot)
        return snapshot

    async def get_live_state(self, match_id: int) -> ScoreSnapshot:
        """The newest snapshot of a match.

        Raises:
            NotFoundError: If the match does not exist or has no snapshots.
        """
        await self.store.matches.get_match(match_id)
        snapshot = await self.store.scores.latest(match_id)
        if snapshot is None:
            raise NotFoundError("ScoreSnapshot for match", match_id)
        return snapshot

    async def get_win_probability(self, match_id: int) -> float:
        """Team A's live win probability at the newest snapshot."""
        return await self._win_probability(await self.get_live_state(match_id))

    async def get_history(self, match_id: int) -> list[ScoreSnapshot]:
        """All snapshots of a match, oldest first."""
        await self.store.matches.get_match(match_id)
        return await self.store.scores.list_for_match(match_id)

    async def _validate_positions(self, teams: MatchTeams, positions: CourtPositions) -> None:
        for team_id, side in (
            (teams.team_a_id, positions.team_a),
            (teams.team_b_id, positions.team_b),
        ):
            roster = await self.store.matches.get_team_members(team_id)
            self._check_side(team_id, side, roster)

    @staticmethod
    def _check_side(team_id: int, side: TeamPositions, roster: list[int]) -> None:
        if len(roster) != 2:
            raise ValidationError(
                f"Team {team_id} has {len(roster)} players; expected 2",
                offending_id=team_id,
            )
        if side.right == side.left:
            raise ValidationError(
                f"Player {side.right} cannot hold both positions of team {team_id}",
                offending_id=side.right,
            )
        for player_id in side.players:
            if player_id not in roster:
                raise ValidationError(
                    f"Player {player_id} is not on team {team_id}",
                    offending_id=player_id,
                )

    async def _win_probability(self, snapshot: ScoreSnapshot) -> float:
        positions = CourtPositions.from_dict(snapshot.positions)
        return await self.ratings.live_win_probability(
            positions.team_a.players,
            positions.team_b.players,
            snapshot.team_a_score,
            snapshot.team_b_score,
        )

    async def _emit_score_update(self, match_id: int, snapshot: ScoreSnapshot) -> None:
        try:
            probability = await self._win_probability(snapshot)
        except Exception as e:
            logger.warning("win_probability_failed", match_id=match_id, error=str(e))
            return
        logger.info("win_probability", match_id=match_id, team_a=round(probability, 4))
        await self._publish(
            ScoreUpdateEvent(
                match_id=match_id,
                team_a=snapshot.team_a_score,
                team_b=snapshot.team_b_score,
                win_probability=probability,
            )
        )

    async def _publish(self, event: MatchEvent) -> None:
        try:
            await self.notifier.publish(event)
        except Exception as e:
            logger.warning(
                "notification_failed", match_id=event.match_id, type=event.type, error=str(e)
            )
