"""
Keyword sentiment classifier.

Deterministic and intentionally simple: a text is positive when it contains
more distinct positive keywords than negative ones, and vice versa. Keywords
match as substrings, so "unhappy" counts as "happy". Do not "fix" this
without also changing stored expectations downstream.
"""

from enum import Enum
from typing import Iterable, Optional


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


# Used for the form-wide breakdown, one classification per text answer
POSITIVE_KEYWORDS = (
    "excellent", "great", "amazing", "wonderful", "fantastic", "love", "perfect",
    "outstanding", "satisfied", "happy", "good", "nice", "awesome",
)
NEGATIVE_KEYWORDS = (
    "terrible", "awful", "horrible", "hate", "disgusting", "poor", "bad",
    "disappointed", "frustrated", "angry", "worst", "useless",
)

# Used for the per-response label shown next to each submission
RESPONSE_POSITIVE_KEYWORDS = POSITIVE_KEYWORDS + ("brilliant",)
RESPONSE_NEGATIVE_KEYWORDS = NEGATIVE_KEYWORDS + ("annoying",)

POSITIVE_RATING_THRESHOLD = 4
NEGATIVE_RATING_THRESHOLD = 2


def count_keyword_matches(text: str, keywords: Iterable[str]) -> int:
    """Number of distinct keywords occurring anywhere in text."""
    return sum(1 for word in keywords if word in text)


def classify_text(
    text: str,
    positive: Iterable[str] = POSITIVE_KEYWORDS,
    negative: Iterable[str] = NEGATIVE_KEYWORDS,
) -> Sentiment:
    """
    Classify lower-cased text by keyword majority.

    Ties, including no matches at all, are neutral.
    """
    positive_count = count_keyword_matches(text, positive)
    negative_count = count_keyword_matches(text, negative)

    if positive_count > negative_count:
        return Sentiment.POSITIVE
    if negative_count > positive_count:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def classify_response(text_answers: Iterable[str], rating: Optional[int] = None) -> Sentiment:
    """
    Sentiment label for a single response.

    A rating of 4+ or 2- decides on its own. A middling rating of 3, or no
    rating at all, leaves the decision to the response's text answers.
    """
    if rating is not None:
        if rating >= POSITIVE_RATING_THRESHOLD:
            return Sentiment.POSITIVE
        if rating <= NEGATIVE_RATING_THRESHOLD:
            return Sentiment.NEGATIVE

    text = " ".join(answer.lower() for answer in text_answers)
    return classify_text(text, RESPONSE_POSITIVE_KEYWORDS, RESPONSE_NEGATIVE_KEYWORDS)
