"""Core configuration, context and errors for Gallery Arena."""

from gallery_arena.core.config import (
    ArenaConfig,
    MatchupConfig,
    QuotaConfig,
    RankingConfig,
    RatingConfig,
    StoreConfig,
    VotingConfig,
    load_config,
)
from gallery_arena.core.context import MatchupScope, VoterContext, VoteScope
from gallery_arena.core.errors import (
    ArenaError,
    ConfigurationError,
    InvalidReference,
    MissingFieldError,
    QuotaExceeded,
    StoreUnavailable,
)

__all__ = [
    "ArenaConfig",
    "MatchupConfig",
    "QuotaConfig",
    "RankingConfig",
    "RatingConfig",
    "StoreConfig",
    "VotingConfig",
    "load_config",
    "MatchupScope",
    "VoteScope",
    "VoterContext",
    "ArenaError",
    "ConfigurationError",
    "InvalidReference",
    "MissingFieldError",
    "QuotaExceeded",
    "StoreUnavailable",
]
