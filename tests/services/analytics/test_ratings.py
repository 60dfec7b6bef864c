"""
Tests for rating aggregation.
"""
from app.services.analytics.ratings import average_rating, round_half_up, valid_ratings


class TestRoundHalfUp:

    def test_halves_round_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(4.75, 1) == 4.8

    def test_other_values_round_to_nearest(self):
        assert round_half_up(66.666) == 67
        assert round_half_up(4.333, 1) == 4.3


class TestAverageRating:
    """Test the mean of valid ratings."""

    def test_five_three_one_averages_three(self):
        assert average_rating([5, 3, 1]) == 3.0

    def test_rounded_to_one_decimal(self):
        assert average_rating([4, 4, 5]) == 4.3
        assert average_rating([4, 5]) == 4.5

    def test_missing_and_non_positive_values_are_ignored(self):
        assert valid_ratings([None, 0, -1, 4]) == [4]
        assert average_rating([None, 0, 4]) == 4.0

    def test_nothing_to_average_is_zero(self):
        assert average_rating([]) == 0.0
        assert average_rating([None, None]) == 0.0
