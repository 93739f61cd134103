"""Custom exceptions for configuration, validation and dependency errors."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Base exception for configuration errors with optional suggestions."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[Configuration Error] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class TournamentError(Exception):
    """Base exception for tournament core operations."""

    label = "Tournament Error"

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[{self.label}] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class NotFoundError(TournamentError):
    """Error when a tournament, match, team or player does not exist."""

    label = "Not Found"

    def __init__(self, entity: str, entity_id: int | str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ValidationError(TournamentError):
    """Error when a request is invalid for the current state.

    Attributes:
        offending_id: The team, player or match id that caused the rejection.
    """

    label = "Validation Error"

    def __init__(self, message: str, offending_id: int | None = None) -> None:
        self.offending_id = offending_id
        super().__init__(message)


class FatalConstraintFailure(TournamentError):
    """Error when no pairing satisfies the teammate-history constraint.

    Must not be retried with relaxed rules without an explicit operator decision.
    """

    label = "Fatal Constraint Failure"

    def __init__(self, tournament_id: int, round_number: int, players: int) -> None:
        self.tournament_id = tournament_id
        self.round_number = round_number
        super().__init__(
            f"No valid pairing configuration found for round {round_number} "
            f"of tournament {tournament_id} ({players} players)",
            "Every complete assignment repeats a prior partnership. "
            "Adjust the roster or history manually before retrying.",
        )


class DependencyFailure(TournamentError):
    """Error when the persistence collaborator is unavailable or rejects a write."""

    label = "Dependency Failure"

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} failed: {reason}")
