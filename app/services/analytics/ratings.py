"""Rating aggregation for RATING questions."""

import math
from typing import Iterable, Optional


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for positive values (2.25 -> 2.3, 2.5 -> 3).

    The built-in round() rounds halves to even, which would make
    percentages and averages drift from what the dashboard shows.
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def valid_ratings(values: Iterable[Optional[int]]) -> list[int]:
    """Drop missing and non-positive ratings."""
    return [v for v in values if v is not None and v > 0]


def average_rating(values: Iterable[Optional[int]]) -> float:
    """
    Mean of the valid ratings, rounded to one decimal.

    Returns 0 when there is nothing to average; callers treat 0 as
    "no rating data".
    """
    ratings = valid_ratings(values)
    if not ratings:
        return 0.0
    return round_half_up(sum(ratings) / len(ratings), 1)
