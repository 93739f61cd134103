from .service import ScoringService, snapshot_to_state, state_to_snapshot
from .state_machine import (
    CourtPositions,
    MatchTeams,
    ScoreLog,
    ScoreState,
    TeamPositions,
    apply_rally,
    winning_team,
)

__all__ = [
    "CourtPositions",
    "MatchTeams",
    "ScoreLog",
    "ScoreState",
    "ScoringService",
    "TeamPositions",
    "apply_rally",
    "snapshot_to_state",
    "state_to_snapshot",
    "winning_team",
]
