"""
Immutable, read-only copies of a form and its submissions.

A snapshot is taken once per request from ORM rows that were loaded in a
single query. All analytics work on the snapshot, never on live ORM objects.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from app.services.analytics.answers import AnswerValue, QuestionType, interpret_answer


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (SQLite hands these back) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class QuestionSnapshot:
    id: str
    question_text: str
    question_type: QuestionType
    is_required: bool = False
    order_index: int = 0
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class AnswerSnapshot:
    question_id: str
    answer_text: str
    value: Optional[AnswerValue] = None


@dataclass(frozen=True)
class ResponseSnapshot:
    id: str
    submitted_at: datetime
    answers: tuple[AnswerSnapshot, ...] = ()
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class FormSnapshot:
    id: str
    title: str
    questions: tuple[QuestionSnapshot, ...] = ()
    responses: tuple[ResponseSnapshot, ...] = ()

    def responses_newest_first(self) -> list[ResponseSnapshot]:
        return sorted(self.responses, key=lambda r: r.submitted_at, reverse=True)


def _string_options(raw) -> tuple[str, ...]:
    # options is a JSON column; ignore anything that is not a list of strings
    if not isinstance(raw, list):
        return ()
    return tuple(opt for opt in raw if isinstance(opt, str))


def snapshot_question(question) -> QuestionSnapshot:
    return QuestionSnapshot(
        id=question.id,
        question_text=question.question_text,
        question_type=QuestionType(question.question_type),
        is_required=bool(question.is_required),
        order_index=question.order_index or 0,
        options=_string_options(question.options),
    )


def snapshot_response(response, questions_by_id: dict) -> ResponseSnapshot:
    answers = []
    for answer in response.answers:
        question = questions_by_id.get(answer.question_id)
        question_type = question.question_type if question else None
        answers.append(
            AnswerSnapshot(
                question_id=answer.question_id,
                answer_text=answer.answer_text or "",
                value=interpret_answer(question_type, answer.answer_text),
            )
        )
    return ResponseSnapshot(
        id=response.id,
        submitted_at=as_utc(response.submitted_at),
        answers=tuple(answers),
        ip_address=response.ip_address,
        user_agent=response.user_agent,
    )


def snapshot_form(form, responses: Optional[Sequence] = None) -> FormSnapshot:
    """
    Build a snapshot from a Form with questions, responses and answers loaded.

    Args:
        form: ORM Form with eagerly loaded relationships
        responses: Override for form.responses (defaults to all of them)
    """
    questions = tuple(
        sorted((snapshot_question(q) for q in form.questions), key=lambda q: q.order_index)
    )
    questions_by_id = {q.id: q for q in questions}
    source = form.responses if responses is None else responses
    return FormSnapshot(
        id=form.id,
        title=form.title,
        questions=questions,
        responses=tuple(snapshot_response(r, questions_by_id) for r in source),
    )
