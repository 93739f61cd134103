"""Rally-scoring transitions for a doubles match.

Everything here is pure and works in memory. The score log is an ordered list
of states with a cursor, so a full match (including undo) can be replayed
without a database.

Team A is always the team with the lower id. Positions and scores are stored
per side (A/B), so that ordering decides which roster a slot belongs to.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from aura_tournament.core.config import ScoringConfig
from aura_tournament.core.errors import ValidationError

FIRST_SERVER = 1
SECOND_SERVER = 2


@dataclass(frozen=True)
class TeamPositions:
    """Which player stands on the right and left service court."""

    right: int
    left: int

    def swapped(self) -> TeamPositions:
        return TeamPositions(right=self.left, left=self.right)

    @property
    def players(self) -> tuple[int, int]:
        return self.right, self.left


@dataclass(frozen=True)
class CourtPositions:
    """Positions for both sides of the court."""

    team_a: TeamPositions
    team_b: TeamPositions

    def to_dict(self) -> dict:
        return {
            "team_a": {"right": self.team_a.right, "left": self.team_a.left},
            "team_b": {"right": self.team_b.right, "left": self.team_b.left},
        }

    @classmethod
    def from_dict(cls, data: dict) -> CourtPositions:
        """Parse the stored JSON shape.

        Raises:
            ValidationError: If a side or slot is missing.
        """
        try:
            return cls(
                team_a=TeamPositions(
                    right=int(data["team_a"]["right"]), left=int(data["team_a"]["left"])
                ),
                team_b=TeamPositions(
                    right=int(data["team_b"]["right"]), left=int(data["team_b"]["left"])
                ),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Malformed positions: {data!r}") from e


@dataclass(frozen=True)
class MatchTeams:
    """The two team ids of a match, Team A first.

    Team A must hold the lower id; serve rotation and the stored positions
    depend on it.
    """

    team_a_id: int
    team_b_id: int

    def __post_init__(self) -> None:
        if self.team_a_id >= self.team_b_id:
            raise ValidationError(
                f"Team A id {self.team_a_id} must be lower than Team B id {self.team_b_id}",
                offending_id=self.team_a_id,
            )

    def __contains__(self, team_id: object) -> bool:
        return team_id in (self.team_a_id, self.team_b_id)

    def other(self, team_id: int) -> int:
        """The opponent of team_id."""
        self.require(team_id)
        return self.team_b_id if team_id == self.team_a_id else self.team_a_id

    def require(self, team_id: int) -> None:
        """Raise ValidationError unless team_id plays in this match."""
        if team_id not in self:
            raise ValidationError(
                f"Team {team_id} is not part of this match "
                f"(teams {self.team_a_id}, {self.team_b_id})",
                offending_id=team_id,
            )


@dataclass(frozen=True)
class ScoreState:
    """One point in a match's scoring history."""

    team_a_score: int
    team_b_score: int
    serving_team_id: int
    server_sequence: int
    positions: CourtPositions

    @classmethod
    def opening(cls, serving_team_id: int, positions: CourtPositions) -> ScoreState:
        """0-0 with the serving team on its second server, as at the start of a game."""
        return cls(
            team_a_score=0,
            team_b_score=0,
            serving_team_id=serving_team_id,
            server_sequence=SECOND_SERVER,
            positions=positions,
        )


def apply_rally(state: ScoreState, teams: MatchTeams, rally_winner: int) -> ScoreState:
    """Next state after a rally won by rally_winner.

    The serving team scores and swaps its own right/left players. A rally lost
    by the first server passes serve to the partner; lost by the second
    server it passes to the other team's first server. Side-outs never score
    or move players.

    Raises:
        ValidationError: If rally_winner is not one of the match's teams.
    """
    teams.require(rally_winner)

    if rally_winner == state.serving_team_id:
        positions = state.positions
        if rally_winner == teams.team_a_id:
            return replace(
                state,
                team_a_score=state.team_a_score + 1,
                positions=replace(positions, team_a=positions.team_a.swapped()),
            )
        return replace(
            state,
            team_b_score=state.team_b_score + 1,
            positions=replace(positions, team_b=positions.team_b.swapped()),
        )

    if state.server_sequence == FIRST_SERVER:
        return replace(state, server_sequence=SECOND_SERVER)
    return replace(
        state,
        server_sequence=FIRST_SERVER,
        serving_team_id=teams.other(state.serving_team_id),
    )


def winning_team(
    state: ScoreState, teams: MatchTeams, rules: ScoringConfig | None = None
) -> int | None:
    """Team id that has won at this state, or None while play continues."""
    rules = rules or ScoringConfig()
    a, b = state.team_a_score, state.team_b_score
    if a >= rules.points_to_win and a - b >= rules.win_by:
        return teams.team_a_id
    if b >= rules.points_to_win and b - a >= rules.win_by:
        return teams.team_b_id
    return None


class ScoreLog:
    """Ordered score states of one match with a cursor at the live state.

    append() drops anything after the cursor, undo() moves the cursor back
    one state. The opening state can never be undone.
    """

    def __init__(self, states: list[ScoreState] | None = None) -> None:
        self._states: list[ScoreState] = list(states or [])
        self._cursor = len(self._states) - 1

    def __len__(self) -> int:
        return self._cursor + 1

    @property
    def started(self) -> bool:
        return self._cursor >= 0

    @property
    def states(self) -> list[ScoreState]:
        """Live history, oldest first."""
        return self._states[: self._cursor + 1]

    def start(self, opening: ScoreState) -> ScoreState:
        """Reset the log to a single opening state."""
        self._states = [opening]
        self._cursor = 0
        return opening

    def current(self) -> ScoreState:
        if not self.started:
            raise ValidationError("Match has not started")
        return self._states[self._cursor]

    def append(self, state: ScoreState) -> ScoreState:
        if not self.started:
            raise ValidationError("Match has not started")
        del self._states[self._cursor + 1 :]
        self._states.append(state)
        self._cursor += 1
        return state

    def record(self, teams: MatchTeams, rally_winner: int) -> ScoreState:
        """Apply a rally to the live state and append the result."""
        return self.append(apply_rally(self.current(), teams, rally_winner))

    def undo(self) -> ScoreState:
        """Step back one state and return the new live state.

        Raises:
            ValidationError: If only the opening state is left.
        """
        if self._cursor <= 0:
            raise ValidationError("Cannot undo. Match is at start state.")
        self._cursor -= 1
        return self._states[self._cursor]
