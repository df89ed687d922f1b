"""Elo rating calculations for Gallery Arena."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EloUpdate:
    """Result of applying the Elo rule to one vote.

    Attributes:
        winner_before: Winner rating before the vote.
        loser_before: Loser rating before the vote.
        winner_delta: Change applied to the winner (positive for K > 0).
        loser_delta: Change applied to the loser (negative for K > 0).
        expected_winner: Pre-vote win probability of the winner.
    """

    winner_before: float
    loser_before: float
    winner_delta: float
    loser_delta: float
    expected_winner: float

    @property
    def winner_after(self) -> float:
        return self.winner_before + self.winner_delta

    @property
    def loser_after(self) -> float:
        return self.loser_before + self.loser_delta


def calculate_expected_win_chance(rating_a: float, rating_b: float) -> float:
    """Calculate expected win probability for player A against player B.

    Uses the standard Elo formula:
    E_A = 1 / (1 + 10^((R_B - R_A) / 400))

    Args:
        rating_a: Rating of player A.
        rating_b: Rating of player B.

    Returns:
        Probability that A wins (0.0 to 1.0).
    """
    return 1.0 / (1.0 + 10 ** ((rating_b - rating_a) / 400))


def match_quality(rating_a: float, rating_b: float) -> float:
    """How balanced a pairing is: 1.0 for equal ratings, towards 0.0 for mismatches."""
    expected_a = calculate_expected_win_chance(rating_a, rating_b)
    return 2 * min(expected_a, 1.0 - expected_a)


def update_elo(
    winner_rating: float,
    loser_rating: float,
    k_factor: float = 32.0,
) -> EloUpdate:
    """Compute rating changes after the winner beats the loser.

    Both expectations come from the same pre-vote ratings, so the two deltas
    have equal magnitude and opposite sign.

    Args:
        winner_rating: Current rating of the winner.
        loser_rating: Current rating of the loser.
        k_factor: Maximum movement per vote.

    Returns:
        EloUpdate with the deltas to apply.
    """
    expected_winner = calculate_expected_win_chance(winner_rating, loser_rating)
    expected_loser = 1.0 - expected_winner

    return EloUpdate(
        winner_before=winner_rating,
        loser_before=loser_rating,
        winner_delta=k_factor * (1.0 - expected_winner),
        loser_delta=k_factor * (0.0 - expected_loser),
        expected_winner=expected_winner,
    )


class EloRule:
    """Configured Elo update rule.

    Attributes:
        initial_rating: Starting rating for new items and ledger rows.
        k_factor: K-factor for rating adjustments.
    """

    def __init__(self, initial_rating: float = 1500.0, k_factor: float = 32.0) -> None:
        if k_factor <= 0:
            msg = f"k_factor must be positive (got {k_factor})"
            raise ValueError(msg)
        self.initial_rating = initial_rating
        self.k_factor = k_factor

    def apply(self, winner_rating: float, loser_rating: float) -> EloUpdate:
        """Compute the update for one vote."""
        return update_elo(winner_rating, loser_rating, k_factor=self.k_factor)
