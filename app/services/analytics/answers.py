"""
Typed reading of stored answer text.

Answers are persisted as plain strings whatever the question type. They are
interpreted exactly once, when a snapshot is taken, into one of:

- TextValue    free text from a TEXT or TEXTAREA question
- ChoiceValue  the selected option of a MULTIPLE_CHOICE question
- RatingValue  the star count of a RATING question

Everything downstream matches on these types instead of re-parsing strings.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class QuestionType(str, Enum):
    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    RATING = "RATING"


FREE_TEXT_TYPES = frozenset({QuestionType.TEXT, QuestionType.TEXTAREA})
SUMMARIZED_TYPES = frozenset({QuestionType.MULTIPLE_CHOICE, QuestionType.RATING})

RATING_SCALE = range(1, 6)

# Leading integer, the way the form frontend parses star values
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class TextValue:
    text: str


@dataclass(frozen=True)
class ChoiceValue:
    option: str


@dataclass(frozen=True)
class RatingValue:
    # None when the stored text carries no usable rating
    rating: Optional[int]


AnswerValue = Union[TextValue, ChoiceValue, RatingValue]


def parse_rating(text: Optional[str]) -> Optional[int]:
    """
    Read a rating from answer text.

    "4" -> 4, " 5 stars" -> 5. Returns None for text that does not start
    with an integer and for values <= 0. Never raises: respondents control
    this string.
    """
    if not text:
        return None
    match = _LEADING_INT.match(text)
    if not match:
        return None
    value = int(match.group(1))
    return value if value > 0 else None


def interpret_answer(
    question_type: Optional[QuestionType],
    answer_text: Optional[str],
) -> Optional[AnswerValue]:
    """Interpret raw answer text for the given question type.

    Returns None for empty answers and for answers whose question type is
    unknown (the question was removed from the form).
    """
    if not answer_text or question_type is None:
        return None
    if question_type in FREE_TEXT_TYPES:
        return TextValue(answer_text)
    if question_type == QuestionType.MULTIPLE_CHOICE:
        return ChoiceValue(answer_text)
    if question_type == QuestionType.RATING:
        return RatingValue(parse_rating(answer_text))
    return None
