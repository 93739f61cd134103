"""Database persistence for tournaments, rosters, standings and round creation."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlmodel import Session, col, select

from aura_tournament.core.errors import NotFoundError, ValidationError
from aura_tournament.models import (
    Match,
    MatchStatus,
    Player,
    PlayerRating,
    Registration,
    StandingsEntry,
    Team,
    TeamMember,
    Tournament,
)

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine

TeamPlayers = tuple[int, int]


@dataclass(frozen=True)
class CreatedMatch:
    """A scheduled match written for a new round."""

    match_id: int
    round: int
    team_a_id: int
    team_b_id: int
    team_a_players: TeamPlayers
    team_b_players: TeamPlayers


def _team_rosters(session: Session, match_ids: Sequence[int]) -> dict[int, dict[int, list[int]]]:
    """match id -> team id -> player ids."""
    if not match_ids:
        return {}
    statement = (
        select(Team.match_id, TeamMember.team_id, TeamMember.player_id)
        .select_from(TeamMember)
        .join(Team, col(Team.id) == col(TeamMember.team_id))
        .where(col(Team.match_id).in_(match_ids))
        .order_by(col(TeamMember.id))
    )
    rosters: dict[int, dict[int, list[int]]] = defaultdict(lambda: defaultdict(list))
    for match_id, team_id, player_id in session.exec(statement).all():
        rosters[match_id][team_id].append(player_id)
    return rosters


class TournamentRepository(AsyncRepository):
    """Persist tournaments and derive the inputs of the pairing generator."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def create_tournament(self, name: str, total_rounds: int) -> Tournament:
        """Create a tournament."""

        def _create(session: Session) -> Tournament:
            tournament = Tournament(name=name, total_rounds=total_rounds)
            session.add(tournament)
            session.commit()
            session.refresh(tournament)
            return tournament

        return await self._run_session(_create, "create_tournament")

    async def add_player(self, username: str) -> Player:
        """Create a player."""

        def _create(session: Session) -> Player:
            player = Player(username=username)
            session.add(player)
            session.commit()
            session.refresh(player)
            return player

        return await self._run_session(_create, "add_player")

    async def register(self, tournament_id: int, player_ids: Sequence[int]) -> int:
        """Register players for a tournament. Already registered players are skipped.

        Returns:
            Number of new registrations.
        """

        def _register(session: Session) -> int:
            if session.get(Tournament, tournament_id) is None:
                raise NotFoundError("Tournament", tournament_id)
            existing = set(
                session.exec(
                    select(Registration.player_id).where(
                        Registration.tournament_id == tournament_id
                    )
                ).all()
            )
            added = 0
            for player_id in player_ids:
                if session.get(Player, player_id) is None:
                    raise NotFoundError("Player", player_id)
                if player_id in existing:
                    continue
                session.add(Registration(tournament_id=tournament_id, player_id=player_id))
                existing.add(player_id)
                added += 1
            session.commit()
            return added

        return await self._run_session(_register, "register_players")

    async def get_tournament(self, tournament_id: int) -> Tournament:
        """Get a tournament.

        Raises:
            NotFoundError: If the tournament does not exist.
        """

        def _get(session: Session) -> Tournament:
            tournament = session.get(Tournament, tournament_id)
            if tournament is None:
                raise NotFoundError("Tournament", tournament_id)
            return tournament

        return await self._run_session(_get, "get_tournament")

    async def get_matches(self, tournament_id: int) -> list[Match]:
        """All matches of a tournament, ordered by round then id."""

        def _get(session: Session) -> list[Match]:
            statement = (
                select(Match)
                .where(Match.tournament_id == tournament_id)
                .order_by(col(Match.round), col(Match.id))
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get, "get_matches")

    async def get_standings(
        self,
        tournament_id: int,
        default_mu: float,
        win_points: float = 1.0,
        loss_points: float = 0.0,
    ) -> list[StandingsEntry]:
        """Registered players with current mu and points from completed matches.

        Args:
            tournament_id: Tournament identifier.
            default_mu: Rating for players without a rating row.
            win_points: Points per match won.
            loss_points: Points per match lost.
        """

        def _get(session: Session) -> list[StandingsEntry]:
            statement = (
                select(Player.id, Player.username)
                .join(Registration, col(Registration.player_id) == col(Player.id))
                .where(Registration.tournament_id == tournament_id)
            )
            players = dict(session.exec(statement).all())
            if not players:
                return []

            ratings = {
                r.player_id: r.mu
                for r in session.exec(
                    select(PlayerRating).where(col(PlayerRating.player_id).in_(list(players)))
                ).all()
            }

            completed = session.exec(
                select(Match).where(
                    Match.tournament_id == tournament_id,
                    Match.status == MatchStatus.COMPLETED.value,
                    col(Match.winner_team_id).is_not(None),
                )
            ).all()
            points: dict[int, float] = defaultdict(float)
            rosters = _team_rosters(session, [m.id for m in completed])
            for match in completed:
                for team_id, members in rosters.get(match.id, {}).items():
                    award = win_points if team_id == match.winner_team_id else loss_points
                    for player_id in members:
                        points[player_id] += award

            return [
                StandingsEntry(
                    player_id=player_id,
                    rating=ratings.get(player_id, default_mu),
                    points=points.get(player_id, 0.0),
                    name=username,
                )
                for player_id, username in players.items()
            ]

        return await self._run_session(_get, "get_standings")

    async def get_teammate_history(self, tournament_id: int) -> dict[int, set[int]]:
        """Everyone each player has partnered in this tournament, any round or status."""

        def _get(session: Session) -> dict[int, set[int]]:
            match_ids = list(
                session.exec(select(Match.id).where(Match.tournament_id == tournament_id)).all()
            )
            history: dict[int, set[int]] = defaultdict(set)
            for teams in _team_rosters(session, match_ids).values():
                for members in teams.values():
                    for player_id in members:
                        history[player_id].update(p for p in members if p != player_id)
            return dict(history)

        return await self._run_session(_get, "get_teammate_history")

    async def create_round(
        self,
        tournament_id: int,
        round_number: int,
        pairings: Sequence[tuple[TeamPlayers, TeamPlayers]],
    ) -> list[CreatedMatch]:
        """Write one scheduled match per pairing in a single transaction.

        Team A is inserted and flushed before Team B, so it always holds the
        lower team id.

        Raises:
            ValidationError: If the database hands out ids that break that order.
        """

        def _create(session: Session) -> list[CreatedMatch]:
            created = []
            for team_a_players, team_b_players in pairings:
                match = Match(
                    tournament_id=tournament_id,
                    round=round_number,
                    status=MatchStatus.SCHEDULED.value,
                )
                session.add(match)
                session.flush()

                team_ids = []
                for players in (team_a_players, team_b_players):
                    team = Team(match_id=match.id)
                    session.add(team)
                    session.flush()
                    for player_id in players:
                        session.add(TeamMember(team_id=team.id, player_id=player_id))
                    team_ids.append(team.id)

                team_a_id, team_b_id = team_ids
                if team_a_id >= team_b_id:
                    raise ValidationError(
                        f"Team A id {team_a_id} is not lower than Team B id {team_b_id}",
                        offending_id=match.id,
                    )
                created.append(
                    CreatedMatch(
                        match_id=match.id,
                        round=round_number,
                        team_a_id=team_a_id,
                        team_b_id=team_b_id,
                        team_a_players=tuple(team_a_players),
                        team_b_players=tuple(team_b_players),
                    )
                )
            session.commit()
            return created

        return await self._run_session(_create, "create_round")
