"""Shared fixtures for storage-backed service tests."""

from pathlib import Path

import pytest
import pytest_asyncio

from aura_tournament.core.config import AuraConfig, WinProbabilityConfig
from aura_tournament.services.notifications import MatchBroadcaster
from aura_tournament.services.scoring import CourtPositions, TeamPositions
from aura_tournament.services.storage import CreatedMatch
from aura_tournament.tournament import TournamentService, create_service

PLAYER_NAMES = ["ann", "bob", "cat", "dan", "eve", "fay", "gus", "hal", "ivy"]


@pytest.fixture
def config() -> AuraConfig:
    return AuraConfig(win_probability=WinProbabilityConfig(seed=42, samples=10))


@pytest.fixture
def broadcaster() -> MatchBroadcaster:
    return MatchBroadcaster()


@pytest_asyncio.fixture
async def service(tmp_path: Path, config: AuraConfig, broadcaster: MatchBroadcaster):
    service = create_service(
        config,
        database_url=f"sqlite:///{tmp_path / 'aura.db'}",
        notifier=broadcaster,
    )
    yield service
    await service.close()


@pytest.fixture
def make_tournament(service: TournamentService):
    """Create a tournament with `players` registered players."""

    async def _make(players: int = 4, rounds: int = 3):
        tournament = await service.create_tournament("Club Night", total_rounds=rounds)
        ids = [(await service.add_player(name)).id for name in PLAYER_NAMES[:players]]
        await service.register(tournament.id, ids)
        return tournament

    return _make


@pytest.fixture
def play_match(service: TournamentService):
    """Start a match with Team A serving and let Team A win 11-0."""

    async def _play(match: CreatedMatch) -> None:
        await service.start_match(match.match_id, match.team_a_id, court_positions(match))
        for _ in range(11):
            await service.record_point(match.match_id, match.team_a_id)

    return _play


def court_positions(match: CreatedMatch) -> CourtPositions:
    a_right, a_left = match.team_a_players
    b_right, b_left = match.team_b_players
    return CourtPositions(
        team_a=TeamPositions(right=a_right, left=a_left),
        team_b=TeamPositions(right=b_right, left=b_left),
    )


@pytest.fixture
def positions_for():
    """Court positions using each team's roster order."""
    return court_positions
