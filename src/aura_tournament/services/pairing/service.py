"""Round orchestration: validate round state, pair the roster, persist matches."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from aura_tournament.core.config import AuraConfig
from aura_tournament.core.errors import FatalConstraintFailure, ValidationError
from aura_tournament.models import Match, MatchStatus
from aura_tournament.services.pairing.generator import (
    PLAYERS_PER_MATCH,
    TeamPairing,
    generate_pairings,
)
from aura_tournament.services.storage import CreatedMatch, TournamentStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class ScheduledMatch:
    """A persisted match of a new round with the pairing that produced it."""

    match: CreatedMatch
    pairing: TeamPairing


@dataclass(frozen=True)
class RoundResult:
    """Outcome of generating one round."""

    tournament_id: int
    round_number: int
    matches: list[ScheduledMatch]


def next_round_number(matches: list[Match], total_rounds: int) -> int:
    """Round to generate next given every match of the tournament so far.

    Raises:
        ValidationError: If the latest round has unfinished matches or the
            tournament has played all its rounds.
    """
    last_round = max((m.round for m in matches), default=0)
    if last_round:
        unfinished = [
            m
            for m in matches
            if m.round == last_round
            and (m.status != MatchStatus.COMPLETED.value or m.winner_team_id is None)
        ]
        if unfinished:
            raise ValidationError(
                f"Round {last_round} is incomplete "
                f"({len(unfinished)} match(es) without a result)",
                offending_id=unfinished[0].id,
            )
    next_round = last_round + 1
    if next_round > total_rounds:
        raise ValidationError(f"Tournament complete: all {total_rounds} rounds played")
    return next_round


class PairingService:
    """Generate and persist rounds for a tournament."""

    def __init__(self, store: TournamentStore, config: AuraConfig) -> None:
        self.store = store
        self.config = config

    async def generate_round(self, tournament_id: int) -> RoundResult:
        """Pair every registered player for the next round.

        Raises:
            NotFoundError: If the tournament does not exist.
            ValidationError: If the previous round is unfinished, the
                tournament is over, or the roster size is unusable.
            FatalConstraintFailure: If every assignment repeats a partnership.
        """
        tournament = await self.store.tournaments.get_tournament(tournament_id)
        matches = await self.store.tournaments.get_matches(tournament_id)
        round_number = next_round_number(matches, tournament.total_rounds)

        pairing_config = self.config.pairing
        standings = await self.store.tournaments.get_standings(
            tournament_id,
            default_mu=self.config.rating.initial_mu,
            win_points=pairing_config.win_points,
            loss_points=pairing_config.loss_points,
        )
        self._validate_roster(len(standings))

        history = await self.store.tournaments.get_teammate_history(tournament_id)
        pairings = generate_pairings(standings, history, pairing_config.point_scale_factor)
        if pairings is None:
            logger.error(
                "pairing_failed",
                tournament_id=tournament_id,
                round=round_number,
                players=len(standings),
            )
            raise FatalConstraintFailure(tournament_id, round_number, len(standings))

        created = await self.store.tournaments.create_round(
            tournament_id,
            round_number,
            [
                (
                    tuple(p.player_id for p in pairing.team_a),
                    tuple(p.player_id for p in pairing.team_b),
                )
                for pairing in pairings
            ],
        )
        logger.info(
            "round_generated",
            tournament_id=tournament_id,
            round=round_number,
            matches=len(created),
        )
        return RoundResult(
            tournament_id=tournament_id,
            round_number=round_number,
            matches=[
                ScheduledMatch(match=match, pairing=pairing)
                for match, pairing in zip(created, pairings, strict=True)
            ],
        )

    def _validate_roster(self, count: int) -> None:
        max_players = self.config.pairing.max_players
        if count < PLAYERS_PER_MATCH:
            raise ValidationError(f"Need at least 4 registered players, got {count}")
        if count % PLAYERS_PER_MATCH != 0:
            raise ValidationError(f"Player count must be a multiple of 4, got {count}")
        if count > max_players:
            raise ValidationError(f"Roster of {count} exceeds the limit of {max_players}")
