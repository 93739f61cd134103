from datetime import UTC, datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel


class MatchStatus(StrEnum):
    """Lifecycle of a single match. Only undo may leave COMPLETED."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Player(SQLModel, table=True):
    """A registered player."""

    id: int | None = Field(default=None, primary_key=True)
    username: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Tournament(SQLModel, table=True):
    """A league of doubles rounds."""

    id: int | None = Field(default=None, primary_key=True)
    name: str
    total_rounds: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Registration(SQLModel, table=True):
    """A player's entry into a tournament."""

    id: int | None = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    player_id: int = Field(foreign_key="player.id", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Match(SQLModel, table=True):
    """A doubles encounter between exactly two teams."""

    id: int | None = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round: int = Field(index=True)
    status: str = MatchStatus.SCHEDULED.value
    winner_team_id: int | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None


class Team(SQLModel, table=True):
    """One side of a match. The lower id of a match's two teams is Team A."""

    id: int | None = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class TeamMember(SQLModel, table=True):
    """Roster membership of a player in a team."""

    id: int | None = Field(default=None, primary_key=True)
    team_id: int = Field(foreign_key="team.id", index=True)
    player_id: int = Field(foreign_key="player.id", index=True)
