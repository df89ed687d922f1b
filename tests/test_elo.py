"""Tests for Elo rating calculations."""

import pytest

from gallery_arena.ranking.elo import (
    EloRule,
    calculate_expected_win_chance,
    match_quality,
    update_elo,
)


class TestCalculateExpectedWinChance:
    """Tests for expected win probability calculation."""

    def test_equal_ratings(self):
        """Test equal ratings produce 0.5 expected."""
        expected = calculate_expected_win_chance(1500, 1500)
        assert expected == pytest.approx(0.5, abs=0.001)

    def test_higher_rating_higher_expected(self):
        """Test higher rated item has higher expected score."""
        expected = calculate_expected_win_chance(1600, 1400)
        assert 0.5 < expected < 1.0

    def test_400_point_difference(self):
        """Test 400 point difference produces ~91% expected."""
        expected = calculate_expected_win_chance(1900, 1500)
        assert expected == pytest.approx(0.909, abs=0.01)

    def test_expectations_sum_to_one(self):
        """Test both sides' expectations are complementary."""
        a = calculate_expected_win_chance(1720, 1390)
        b = calculate_expected_win_chance(1390, 1720)
        assert a + b == pytest.approx(1.0)


class TestUpdateElo:
    """Tests for Elo rating updates."""

    def test_equal_ratings_k32(self):
        """Test 1500 vs 1500 with K=32 gives 1516 / 1484."""
        update = update_elo(1500, 1500, k_factor=32)

        assert update.winner_delta == pytest.approx(16.0)
        assert update.loser_delta == pytest.approx(-16.0)
        assert update.winner_after == pytest.approx(1516.0)
        assert update.loser_after == pytest.approx(1484.0)

    def test_winner_gains_loser_loses_equal_magnitude(self):
        """Test deltas have opposite sign and equal magnitude."""
        for winner, loser in [(1500, 1500), (1200, 1800), (1800, 1200), (950.5, 2044.25)]:
            update = update_elo(winner, loser, k_factor=32)
            assert update.winner_delta > 0
            assert update.loser_delta < 0
            assert update.winner_delta == pytest.approx(-update.loser_delta)

    def test_upset_win_larger_change(self):
        """Test underdog win moves more than half of K."""
        update = update_elo(1400, 1600, k_factor=32)
        assert update.winner_delta > 16

    def test_expected_win_smaller_change(self):
        """Test favourite win moves less than half of K."""
        update = update_elo(1600, 1400, k_factor=32)
        assert update.winner_delta < 16

    def test_records_pre_vote_ratings(self):
        """Test the update keeps the ratings it was computed from."""
        update = update_elo(1530.0, 1470.0)
        assert update.winner_before == 1530.0
        assert update.loser_before == 1470.0
        assert update.expected_winner == pytest.approx(calculate_expected_win_chance(1530, 1470))

    def test_k_factor_scales_delta(self):
        """Test delta is proportional to K."""
        small = update_elo(1500, 1500, k_factor=16)
        large = update_elo(1500, 1500, k_factor=64)
        assert large.winner_delta == pytest.approx(4 * small.winner_delta)


class TestMatchQuality:
    """Tests for pairing balance."""

    def test_equal_ratings_are_perfect(self):
        assert match_quality(1500, 1500) == pytest.approx(1.0)

    def test_mismatch_lowers_quality(self):
        assert match_quality(1900, 1500) == pytest.approx(2 * (1 - 0.909), abs=0.01)

    def test_symmetric(self):
        assert match_quality(1300, 1700) == pytest.approx(match_quality(1700, 1300))


class TestEloRule:
    """Tests for the configured rule."""

    def test_apply_uses_k_factor(self):
        """Test apply delegates to update_elo with the configured K."""
        rule = EloRule(k_factor=10)
        update = rule.apply(1500, 1500)
        assert update.winner_delta == pytest.approx(5.0)

    @pytest.mark.parametrize("k_factor", [0, -4])
    def test_non_positive_k_rejected(self, k_factor):
        """Test K must be positive."""
        with pytest.raises(ValueError, match="k_factor must be positive"):
            EloRule(k_factor=k_factor)
