"""
Keyword frequency extraction over free-text answers.
"""

import re
from collections import Counter
from typing import Iterable

TOP_KEYWORDS_LIMIT = 10
MIN_KEYWORD_LENGTH = 4

STOPWORDS = frozenset({
    "this", "that", "with", "have", "will", "been", "from", "they", "know", "want",
    "were", "said", "each", "which", "what", "their", "would", "there", "could", "other",
})

# Anything that is not an ASCII word character or whitespace becomes a space
_PUNCTUATION = re.compile(r"[^\w\s]", re.ASCII)


def tokenize(text: str) -> list[str]:
    """Lower-case, strip punctuation and split into qualifying tokens."""
    cleaned = _PUNCTUATION.sub(" ", text.lower())
    return [
        token for token in cleaned.split()
        if len(token) >= MIN_KEYWORD_LENGTH and token not in STOPWORDS
    ]


def extract_keywords(texts: Iterable[str], limit: int = TOP_KEYWORDS_LIMIT) -> list[str]:
    """
    Most frequent tokens across all texts, most frequent first.

    Tokens with equal counts keep the order in which they first appeared
    (Counter preserves insertion order and most_common sorts stably).
    """
    counts = Counter(tokenize(" ".join(texts)))
    return [word for word, _ in counts.most_common(limit)]
