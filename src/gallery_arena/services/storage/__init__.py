from .catalog_repository import CatalogRepository
from .quota_repository import QuotaRepository
from .rating_repository import AppliedVote, RatingRepository, VoteRequest
from .store import ArenaStore
from .vote_repository import VoteRepository

__all__ = [
    "AppliedVote",
    "ArenaStore",
    "CatalogRepository",
    "QuotaRepository",
    "RatingRepository",
    "VoteRepository",
    "VoteRequest",
]
