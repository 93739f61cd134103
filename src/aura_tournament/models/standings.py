from dataclasses import dataclass


@dataclass(frozen=True)
class StandingsEntry:
    """A player's standing going into a round.

    Attributes:
        player_id: Player identifier.
        rating: Current skill mean.
        points: Standings points (win count with default scoring).
        name: Display name.
    """

    player_id: int
    rating: float
    points: float = 0.0
    name: str = ""

    @property
    def label(self) -> str:
        return self.name or f"Player {self.player_id}"
