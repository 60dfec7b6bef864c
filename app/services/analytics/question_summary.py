"""
Per-question answer tallies for MULTIPLE_CHOICE and RATING questions.
"""

from app.services.analytics.answers import (
    RATING_SCALE,
    ChoiceValue,
    QuestionType,
    RatingValue,
    SUMMARIZED_TYPES,
)
from app.services.analytics.snapshot import FormSnapshot, QuestionSnapshot


def _empty_summary(question: QuestionSnapshot) -> dict[str, int]:
    if question.question_type == QuestionType.RATING:
        return {str(star): 0 for star in RATING_SCALE}
    return {option: 0 for option in question.options}


def _bucket_for(value) -> str | None:
    if isinstance(value, ChoiceValue):
        return value.option
    if isinstance(value, RatingValue) and value.rating is not None and value.rating in RATING_SCALE:
        return str(value.rating)
    return None


def build_question_summaries(form: FormSnapshot) -> dict[str, dict[str, int]]:
    """
    Count answers per option (multiple choice) or per star (rating).

    Buckets are fixed up front: declared options, or "1".."5". Answers that
    match no bucket are dropped rather than added. Text questions get no
    summary at all.
    """
    summaries = {
        q.id: _empty_summary(q)
        for q in form.questions
        if q.question_type in SUMMARIZED_TYPES
    }

    for response in form.responses:
        for answer in response.answers:
            summary = summaries.get(answer.question_id)
            if summary is None:
                continue
            bucket = _bucket_for(answer.value)
            if bucket in summary:
                summary[bucket] += 1

    return summaries
