from datetime import UTC, datetime

from sqlalchemy import Column
from sqlmodel import JSON, Field, SQLModel


class ScoreSnapshot(SQLModel, table=True):
    """Full scoring state of a match after one event.

    The newest row per match (by created_at) is the live state. Positions are
    stored as {"team_a": {"right": id, "left": id}, "team_b": {...}}.
    """

    id: int | None = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    team_a_score: int = 0
    team_b_score: int = 0
    serving_team_id: int = Field(foreign_key="team.id")
    server_sequence: int = Field(default=2, ge=1, le=2)
    positions: dict = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
