"""
Public Forms API

Anonymous endpoints behind a form's public link. Only ACTIVE forms are
served; submissions are rate limited per client IP.
"""

import logging

from fastapi import APIRouter, Request, status

from app.api.deps import DbSession
from app.schemas.form import (
    PublicAuthor,
    PublicForm,
    QuestionResponse,
    SubmissionCreate,
    SubmissionResult,
)
from app.security.rate_limiter import get_client_ip, get_rate_limiter
from app.services import form_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{public_url}", response_model=PublicForm)
async def get_public_form(public_url: str, db: DbSession):
    form = await form_service.get_active_form_by_public_url(db, public_url)
    return PublicForm(
        id=form.id,
        title=form.title,
        description=form.description,
        questions=[QuestionResponse.model_validate(q) for q in form.questions],
        author=PublicAuthor(name=form.owner.name, company=form.owner.company),
        created_at=form.created_at,
    )


@router.post(
    "/{public_url}/submit",
    response_model=SubmissionResult,
    status_code=status.HTTP_201_CREATED,
)
async def submit_form(
    public_url: str,
    submission: SubmissionCreate,
    request: Request,
    db: DbSession,
):
    """Store an anonymous response to an ACTIVE form."""
    client_ip = get_client_ip(request)
    get_rate_limiter("form_submission").enforce(
        client_ip,
        detail="Too many submissions. Please try again later.",
    )

    form = await form_service.get_active_form_by_public_url(db, public_url)
    response = await form_service.submit_response(
        db,
        form,
        submission.answers,
        ip_address=client_ip,
        user_agent=request.headers.get("user-agent", ""),
    )
    return SubmissionResult(
        response_id=response.id,
        submitted_at=response.submitted_at,
    )
