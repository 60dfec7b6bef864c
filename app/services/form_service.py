"""
Form Service

Persistence operations behind the form endpoints: ownership checks,
form CRUD, public lookup and response submission.

Routers stay thin; anything that touches more than one table lives here.
"""

import logging
import re
import uuid
from typing import Optional, Sequence

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.exceptions import InternalError, NotFoundError, ValidationError
from app.models.form import Form, Question, Response, Answer

logger = logging.getLogger(__name__)

FORM_NOT_FOUND = "Form not found or access denied"
PUBLIC_FORM_NOT_FOUND = "Form not found or not available"

_SLUG_UNSAFE = re.compile(r"[^a-z0-9]")


def generate_public_url(title: str) -> str:
    """Slug of the title plus 8 random hex chars, e.g. "q4-survey---3f9a1c2b"."""
    slug = _SLUG_UNSAFE.sub("-", title.lower())
    return f"{slug}-{uuid.uuid4().hex[:8]}"


async def user_owns_form(db: AsyncSession, form_id: str, user_id: int) -> bool:
    """False both for missing forms and for forms owned by someone else."""
    result = await db.execute(
        select(Form.id).where(Form.id == form_id, Form.user_id == user_id)
    )
    return result.scalar_one_or_none() is not None


async def get_owned_form_or_404(
    db: AsyncSession,
    form_id: str,
    user_id: int,
    with_responses: bool = False,
) -> Form:
    """
    Load a form owned by user_id with its questions.

    Ownership is checked before anything is loaded; missing forms and
    forms owned by someone else raise the same NotFoundError.

    Args:
        with_responses: Also load every response and its answers
    """
    if not await user_owns_form(db, form_id, user_id):
        raise NotFoundError(FORM_NOT_FOUND)

    options = [selectinload(Form.questions)]
    if with_responses:
        options.append(selectinload(Form.responses).selectinload(Response.answers))

    result = await db.execute(
        select(Form)
        .where(Form.id == form_id)
        .options(*options)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def count_responses(db: AsyncSession, form_id: str) -> int:
    result = await db.execute(
        select(func.count(Response.id)).where(Response.form_id == form_id)
    )
    return result.scalar() or 0


async def response_counts(db: AsyncSession, form_ids: Sequence[str]) -> dict[str, int]:
    """Response count per form id in one query."""
    if not form_ids:
        return {}
    result = await db.execute(
        select(Response.form_id, func.count(Response.id))
        .where(Response.form_id.in_(form_ids))
        .group_by(Response.form_id)
    )
    return {form_id: count for form_id, count in result.all()}


async def list_forms(db: AsyncSession, user_id: int) -> list[Form]:
    result = await db.execute(
        select(Form)
        .where(Form.user_id == user_id)
        .options(selectinload(Form.questions))
        .order_by(Form.created_at.desc())
    )
    return list(result.scalars().all())


def _build_questions(questions) -> list[Question]:
    # An order_index of 0 falls back to the question's position
    return [
        Question(
            question_text=q.question_text,
            question_type=q.question_type.value,
            is_required=q.is_required,
            options=q.options or None,
            order_index=q.order_index or index,
        )
        for index, q in enumerate(questions)
    ]


async def create_form(db: AsyncSession, user_id: int, data) -> Form:
    """Create a DRAFT form and its questions in one transaction."""
    form = Form(
        user_id=user_id,
        title=data.title,
        description=data.description or None,
        status="DRAFT",
        public_url=generate_public_url(data.title),
    )
    form.questions = _build_questions(data.questions)
    db.add(form)
    await db.commit()

    logger.info(f"Form created: {form.id}", extra={"user_id": user_id})
    return await get_owned_form_or_404(db, form.id, user_id)


def replace_questions(form: Form, questions) -> None:
    """
    Swap every question of the form for new ones.

    New questions get new ids; answers given to the old ones stay stored.
    """
    form.questions.clear()
    form.questions.extend(_build_questions(questions))


async def update_form(db: AsyncSession, form: Form, data) -> Form:
    updates = data.model_dump(exclude_unset=True, exclude={"questions"})
    for field, value in updates.items():
        if value is None and field in ("title", "status"):
            continue
        if field == "status":
            value = value.value
        setattr(form, field, value)

    if data.questions is not None:
        replace_questions(form, data.questions)

    await db.commit()
    logger.info(f"Form updated: {form.id}", extra={"fields": sorted(updates)})
    return await get_owned_form_or_404(db, form.id, form.user_id)


async def set_status(db: AsyncSession, form: Form, status: str) -> Form:
    form.status = status
    await db.commit()
    logger.info(f"Form {form.id} status set to {status}")
    return await get_owned_form_or_404(db, form.id, form.user_id)


async def delete_form(db: AsyncSession, form_id: str, user_id: int) -> None:
    """Delete a form with its questions, responses and answers."""
    form = await get_owned_form_or_404(db, form_id, user_id, with_responses=True)
    await db.delete(form)
    await db.commit()
    logger.info(f"Form deleted: {form_id}", extra={"user_id": user_id})


async def get_active_form_by_public_url(db: AsyncSession, public_url: str) -> Form:
    """Only ACTIVE forms are reachable from their public link."""
    result = await db.execute(
        select(Form)
        .where(Form.public_url == public_url, Form.status == "ACTIVE")
        .options(selectinload(Form.questions), selectinload(Form.owner))
    )
    form = result.scalar_one_or_none()
    if form is None:
        raise NotFoundError(PUBLIC_FORM_NOT_FOUND)
    return form


def validate_submission(form: Form, answers) -> None:
    """
    Check submitted answers against the form's current questions.

    Raises:
        ValidationError: unknown question ids, or required questions left
            unanswered
    """
    question_ids = {q.id for q in form.questions}
    unknown = [a.question_id for a in answers if a.question_id not in question_ids]
    if unknown:
        raise ValidationError(
            "Invalid question IDs in submission",
            errors=[{"question_id": qid, "message": "Unknown question"} for qid in unknown],
        )

    answered = {a.question_id for a in answers}
    missing = [q for q in form.questions if q.is_required and q.id not in answered]
    if missing:
        raise ValidationError(
            "Missing required answers",
            errors=[{"question_id": q.id, "question_text": q.question_text} for q in missing],
        )


async def submit_response(
    db: AsyncSession,
    form: Form,
    answers,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Response:
    """
    Store a response and all its answers atomically.

    Raises:
        InternalError: the write failed; nothing was stored
    """
    validate_submission(form, answers)

    # A rollback expires every loaded row, so keep the id for logging
    form_id = form.id
    response = Response(
        form_id=form_id,
        ip_address=ip_address,
        user_agent=user_agent,
        answers=[
            Answer(question_id=a.question_id, answer_text=a.answer_text)
            for a in answers
        ],
    )
    db.add(response)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(f"Failed to store response for form {form_id}")
        raise InternalError()

    logger.info(
        f"Response {response.id} submitted for form {form_id}",
        extra={"answer_count": len(answers)},
    )
    return response
