"""Tests for the Wilson-based ranking score."""

import pytest

from gallery_arena.ranking.score import (
    DEFAULT_WEIGHTS,
    ScoreWeights,
    normalized_elo,
    rank_score,
    wilson_lower_bound,
)


class TestWilsonLowerBound:
    """Tests for the Wilson score interval lower bound."""

    def test_no_votes_is_zero(self):
        assert wilson_lower_bound(0, 0) == 0.0

    def test_known_values(self):
        """Test against hand-computed bounds at z=1.96."""
        assert wilson_lower_bound(9, 1) == pytest.approx(0.5958, abs=1e-3)
        assert wilson_lower_bound(1, 0) == pytest.approx(0.2065, abs=1e-3)

    def test_consistent_record_beats_single_win(self):
        """Test 9-1 ranks above an unbeaten 1-0."""
        assert wilson_lower_bound(9, 1) > wilson_lower_bound(1, 0)

    def test_more_evidence_raises_bound(self):
        """Test the same win rate over more votes gives a higher bound."""
        assert wilson_lower_bound(80, 20) > wilson_lower_bound(8, 2)

    def test_bound_below_observed_rate(self):
        for wins, losses in [(1, 0), (5, 5), (30, 3)]:
            assert wilson_lower_bound(wins, losses) <= wins / (wins + losses)

    def test_all_losses_is_zero(self):
        assert wilson_lower_bound(0, 12) == pytest.approx(0.0, abs=1e-9)


class TestNormalizedElo:
    """Tests for Elo normalization."""

    def test_midpoint(self):
        assert normalized_elo(1600) == pytest.approx(0.5)

    def test_clamped(self):
        assert normalized_elo(500) == 0.0
        assert normalized_elo(3000) == 1.0


class TestRankScore:
    """Tests for the blended integer score."""

    def test_unvoted_item_scores_elo_part_only(self):
        """Test 0-0 at 1500 scores 0.3 * 0.4375 * 1000."""
        assert rank_score(0, 0, 1500) == 131

    def test_known_value(self):
        assert rank_score(9, 1, 1500) == 548

    def test_wilson_ordering_at_equal_elo(self):
        """Test 9-1 outranks 1-0 when Elo is equal."""
        assert rank_score(9, 1, 1500) > rank_score(1, 0, 1500)

    def test_returns_int(self):
        assert isinstance(rank_score(3, 2, 1512.7), int)

    def test_custom_weights(self):
        """Test Elo-only weights ignore the win record."""
        weights = ScoreWeights(wilson_weight=0.0, elo_weight=1.0)
        assert rank_score(0, 10, 1600, weights) == rank_score(10, 0, 1600, weights) == 500

    def test_default_weights(self):
        assert DEFAULT_WEIGHTS.wilson_weight == 0.7
        assert DEFAULT_WEIGHTS.elo_weight == 0.3
        assert DEFAULT_WEIGHTS.scale == 1000
