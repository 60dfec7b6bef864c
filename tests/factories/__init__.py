"""
Test factories for generating realistic test data.

Uses factory_boy for declarative test data generation.
"""

from .forms import (
    QuestionPayloadFactory,
    FormPayloadFactory,
)
from .snapshots import (
    QuestionSnapshotFactory,
    TextQuestionFactory,
    RatingQuestionFactory,
    ChoiceQuestionFactory,
    AnswerSnapshotFactory,
    ResponseSnapshotFactory,
    FormSnapshotFactory,
    answer_for,
)

__all__ = [
    # API payloads
    "QuestionPayloadFactory",
    "FormPayloadFactory",
    # Analytics snapshots
    "QuestionSnapshotFactory",
    "TextQuestionFactory",
    "RatingQuestionFactory",
    "ChoiceQuestionFactory",
    "AnswerSnapshotFactory",
    "ResponseSnapshotFactory",
    "FormSnapshotFactory",
    "answer_for",
]
