"""Rating rule and ranking score for Gallery Arena."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gallery_arena.ranking.elo import (
    EloRule,
    EloUpdate,
    calculate_expected_win_chance,
    match_quality,
    update_elo,
)
from gallery_arena.ranking.score import (
    DEFAULT_WEIGHTS,
    ScoreWeights,
    normalized_elo,
    rank_score,
    wilson_lower_bound,
)

if TYPE_CHECKING:
    from gallery_arena.core.config import ArenaConfig


def create_elo_rule(config: ArenaConfig) -> EloRule:
    """Create the Elo rule from config."""
    return EloRule(
        initial_rating=config.rating.initial_rating,
        k_factor=config.rating.k_factor,
    )


def create_score_weights(config: ArenaConfig) -> ScoreWeights:
    """Create ranking score weights from config."""
    ranking = config.ranking
    return ScoreWeights(
        wilson_weight=ranking.wilson_weight,
        elo_weight=ranking.elo_weight,
        z=ranking.wilson_z,
        elo_floor=ranking.elo_floor,
        elo_span=ranking.elo_span,
        scale=ranking.scale,
    )


__all__ = [
    "DEFAULT_WEIGHTS",
    "EloRule",
    "EloUpdate",
    "ScoreWeights",
    "calculate_expected_win_chance",
    "create_elo_rule",
    "create_score_weights",
    "match_quality",
    "normalized_elo",
    "rank_score",
    "update_elo",
    "wilson_lower_bound",
]
