from .match_repository import MatchContext, MatchRepository
from .rating_repository import RatingRepository
from .score_repository import ScoreRepository
from .store import TournamentStore
from .tournament_repository import CreatedMatch, TournamentRepository

__all__ = [
    "CreatedMatch",
    "MatchContext",
    "MatchRepository",
    "RatingRepository",
    "ScoreRepository",
    "TournamentRepository",
    "TournamentStore",
]
