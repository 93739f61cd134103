from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class PlayerRating(SQLModel, table=True):
    """Current skill estimate for a player. Mutated only by completed matches."""

    player_id: int = Field(foreign_key="player.id", primary_key=True)
    mu: float = Field(default=25.0, ge=0)
    sigma: float = Field(default=8.33, ge=1.0)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(UTC))


class RatingHistoryEntry(SQLModel, table=True):
    """Write-once audit row, one per player per completed match."""

    id: int | None = Field(default=None, primary_key=True)
    player_id: int = Field(foreign_key="player.id", index=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    old_mu: float
    old_sigma: float
    new_mu: float
    new_sigma: float
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
