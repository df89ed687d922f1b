"""Confidence-adjusted ranking score shared by every leaderboard."""

from __future__ import annotations

import math
from dataclasses import dataclass


def wilson_lower_bound(wins: int, losses: int, z: float = 1.96) -> float:
    """Lower bound of the Wilson score interval for wins / (wins + losses).

    Favours many consistent wins over a handful of unbeaten votes.
    Returns 0.0 when there are no votes.
    """
    n = wins + losses
    if n == 0:
        return 0.0

    p = wins / n
    z2 = z * z
    denominator = 1 + z2 / n
    centre = p + z2 / (2 * n)
    spread = z * math.sqrt((p * (1 - p) + z2 / (4 * n)) / n)
    return (centre - spread) / denominator


def normalized_elo(elo: float, floor: float = 800.0, span: float = 1600.0) -> float:
    """Map an Elo rating onto [0, 1]."""
    return min(1.0, max(0.0, (elo - floor) / span))


@dataclass(frozen=True)
class ScoreWeights:
    """Parameters of the blended score."""

    wilson_weight: float = 0.7
    elo_weight: float = 0.3
    z: float = 1.96
    elo_floor: float = 800.0
    elo_span: float = 1600.0
    scale: int = 1000


DEFAULT_WEIGHTS = ScoreWeights()


def rank_score(
    wins: int,
    losses: int,
    elo: float,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> int:
    """Blend the Wilson lower bound with normalized Elo into an integer score.

    Args:
        wins: Accumulated wins.
        losses: Accumulated losses.
        elo: Current (or mean) Elo rating.
        weights: Blend parameters.

    Returns:
        ``round(scale * (wilson_weight * wilson + elo_weight * normalized_elo))``.
    """
    wilson = wilson_lower_bound(wins, losses, weights.z)
    elo_part = normalized_elo(elo, weights.elo_floor, weights.elo_span)
    return round(weights.scale * (weights.wilson_weight * wilson + weights.elo_weight * elo_part))
