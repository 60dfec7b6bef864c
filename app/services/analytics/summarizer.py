"""
Response summarizer.

Turns a form snapshot into the per-response records shown in the responses
table and the form-wide analytics shown above it.

Two sentiment computations live here and are deliberately kept apart:

- each ProcessedResponse gets one label, where a rating can override the
  keyword heuristic (see sentiment.classify_response);
- the form-wide breakdown classifies every individual text answer with the
  plain keyword heuristic and ignores ratings.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

from app.services.analytics.answers import (
    QuestionType,
    RatingValue,
    TextValue,
)
from app.services.analytics.keywords import extract_keywords
from app.services.analytics.question_summary import build_question_summaries
from app.services.analytics.ratings import average_rating, round_half_up
from app.services.analytics.sentiment import Sentiment, classify_response, classify_text
from app.services.analytics.snapshot import FormSnapshot, ResponseSnapshot

logger = logging.getLogger(__name__)

# Placeholders: neither metric is derived from data yet. Shown as-is in the
# dashboard until real computation replaces them.
PLACEHOLDER_RESPONSE_RATE = 75
PLACEHOLDER_AVG_TIME_TO_COMPLETE = "2.3 min"

# Reported for forms without a single response
EMPTY_RESPONSE_RATE = 0
EMPTY_AVG_TIME_TO_COMPLETE = "N/A"

# Split reported when there is no text to classify
FALLBACK_SENTIMENT_BREAKDOWN = {
    Sentiment.POSITIVE.value: 33,
    Sentiment.NEUTRAL.value: 33,
    Sentiment.NEGATIVE.value: 34,
}

# Which bucket receives leftover points first when remainders tie
_REMAINDER_PRIORITY = (Sentiment.NEGATIVE, Sentiment.NEUTRAL, Sentiment.POSITIVE)


@dataclass
class ProcessedResponse:
    id: str
    submitted_at: datetime
    time_ago: str
    answers: dict[str, str]
    sentiment: Sentiment
    rating: Optional[int] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass
class Analytics:
    response_rate: int
    avg_rating: float
    completion_rate: int
    avg_time_to_complete: str
    top_keywords: list[str] = field(default_factory=list)
    sentiment_breakdown: dict[str, int] = field(default_factory=dict)


@dataclass
class FormReport:
    """Everything the responses page needs, computed from one snapshot."""
    analytics: Analytics
    question_summaries: dict[str, dict[str, int]]
    responses: list[ProcessedResponse]


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count != 1 else ''} ago"


def format_time_ago(submitted_at: datetime, now: Optional[datetime] = None) -> str:
    """
    Human readable age of a submission.

    Minutes are never singularised ("1 minutes ago"); hours, days and weeks
    are. Anything older than a week is counted in weeks without upper bound.
    """
    now = now or datetime.now(timezone.utc)
    minutes = int((now - submitted_at).total_seconds() // 60)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} minutes ago"

    hours = minutes // 60
    if hours < 24:
        return _plural(hours, "hour")

    days = hours // 24
    if days < 7:
        return _plural(days, "day")

    return _plural(days // 7, "week")


def process_response(
    response: ResponseSnapshot,
    now: Optional[datetime] = None,
) -> ProcessedResponse:
    """Build the table row for one response in a single pass over its answers."""
    answers: dict[str, str] = {}
    text_answers: list[str] = []
    rating: Optional[int] = None

    for answer in response.answers:
        answers[answer.question_id] = answer.answer_text
        value = answer.value
        if isinstance(value, TextValue):
            text_answers.append(value.text.lower())
        elif isinstance(value, RatingValue) and value.rating is not None:
            # Last rating wins when a form has several rating questions
            rating = value.rating

    return ProcessedResponse(
        id=response.id,
        submitted_at=response.submitted_at,
        time_ago=format_time_ago(response.submitted_at, now),
        answers=answers,
        sentiment=classify_response(text_answers, rating),
        rating=rating,
        ip_address=response.ip_address,
        user_agent=response.user_agent,
    )


def sentiment_breakdown(counts: dict[Sentiment, int]) -> dict[str, int]:
    """
    Convert sentiment counts into integer percentages summing to 100.

    Uses largest-remainder rounding: every bucket gets its floor, then the
    missing points go to the buckets with the largest fractional parts.
    """
    total = sum(counts.values())
    if total == 0:
        return dict(FALLBACK_SENTIMENT_BREAKDOWN)

    floors = {s: counts.get(s, 0) * 100 // total for s in Sentiment}
    remainders = {s: counts.get(s, 0) * 100 % total for s in Sentiment}
    leftover = 100 - sum(floors.values())

    ranked = sorted(_REMAINDER_PRIORITY, key=lambda s: remainders[s], reverse=True)
    for sentiment in ranked[:leftover]:
        floors[sentiment] += 1

    return {s.value: floors[s] for s in (Sentiment.POSITIVE, Sentiment.NEUTRAL, Sentiment.NEGATIVE)}


def _free_text_answers(form: FormSnapshot) -> list[str]:
    return [
        answer.value.text
        for response in form.responses
        for answer in response.answers
        if isinstance(answer.value, TextValue)
    ]


def _rating_answers(form: FormSnapshot) -> Iterable[Optional[int]]:
    rating_ids = {q.id for q in form.questions if q.question_type == QuestionType.RATING}
    for response in form.responses:
        for answer in response.answers:
            if answer.question_id in rating_ids and isinstance(answer.value, RatingValue):
                yield answer.value.rating


def compute_analytics(form: FormSnapshot) -> Analytics:
    """Form-wide analytics over every response in the snapshot."""
    total = len(form.responses)
    if total == 0:
        return Analytics(
            response_rate=EMPTY_RESPONSE_RATE,
            avg_rating=0.0,
            completion_rate=100,
            avg_time_to_complete=EMPTY_AVG_TIME_TO_COMPLETE,
            top_keywords=[],
            sentiment_breakdown=dict(FALLBACK_SENTIMENT_BREAKDOWN),
        )

    answered = sum(1 for r in form.responses if r.answers)
    completion_rate = int(round_half_up(answered / total * 100))

    texts = _free_text_answers(form)
    counts = {s: 0 for s in Sentiment}
    for text in texts:
        counts[classify_text(text.lower())] += 1

    return Analytics(
        response_rate=PLACEHOLDER_RESPONSE_RATE,
        avg_rating=average_rating(_rating_answers(form)),
        completion_rate=completion_rate,
        avg_time_to_complete=PLACEHOLDER_AVG_TIME_TO_COMPLETE,
        top_keywords=extract_keywords(texts),
        sentiment_breakdown=sentiment_breakdown(counts),
    )


def build_form_report(form: FormSnapshot, now: Optional[datetime] = None) -> FormReport:
    """
    Run the whole engine over a snapshot.

    Responses come back newest first. Filtering and pagination are left to
    the caller.
    """
    now = now or datetime.now(timezone.utc)
    report = FormReport(
        analytics=compute_analytics(form),
        question_summaries=build_question_summaries(form),
        responses=[process_response(r, now) for r in form.responses_newest_first()],
    )
    logger.debug(
        "Built report for form %s: %d responses, %d summaries",
        form.id,
        len(report.responses),
        len(report.question_summaries),
    )
    return report


def filter_responses(
    responses: Iterable[ProcessedResponse],
    search: str = "",
    sentiment: str = "all",
) -> list[ProcessedResponse]:
    """
    Case-insensitive substring search over all answer texts of a response,
    then an exact sentiment match unless sentiment is "all".
    """
    needle = search.lower()
    selected = []
    for response in responses:
        if needle and needle not in " ".join(response.answers.values()).lower():
            continue
        if sentiment != "all" and response.sentiment.value != sentiment:
            continue
        selected.append(response)
    return selected
