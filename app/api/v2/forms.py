"""
Forms API - form management, response listing and CSV export for form owners.
"""

import math
import logging
from typing import Optional

from fastapi import APIRouter, Query, status
from fastapi.responses import Response as HTTPResponse

from app.api.deps import DbSession, CurrentUser
from app.config import settings
from app.exceptions import InternalError
from app.schemas.form import (
    FormCreate,
    FormUpdate,
    FormStatusUpdate,
    FormResponse,
    FormMutationResponse,
    MessageResponse,
    QuestionResponse,
    STATUS_MESSAGES,
)
from app.schemas.response import (
    AnalyticsSchema,
    FormOverview,
    Pagination,
    ProcessedResponseSchema,
    ResponseListResponse,
    SentimentBreakdown,
    SentimentFilter,
)
from app.security.rate_limiter import get_rate_limiter
from app.services import form_service
from app.services.analytics import (
    ExportError,
    build_form_report,
    export_filename,
    filter_responses,
    generate_csv,
    snapshot_form,
)
from app.services.analytics.export import EXPORT_MEDIA_TYPE

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=list[FormResponse])
async def list_forms(db: DbSession, current_user: CurrentUser):
    """List the current user's forms, newest first."""
    forms = await form_service.list_forms(db, current_user.id)
    counts = await form_service.response_counts(db, [f.id for f in forms])
    return [FormResponse.from_form(f, counts.get(f.id, 0)) for f in forms]


@router.post("/", response_model=FormMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_form(data: FormCreate, db: DbSession, current_user: CurrentUser):
    """Create a new form in DRAFT status."""
    get_rate_limiter("form_creation").enforce(
        str(current_user.id),
        detail="Daily form creation limit reached. Please try again later.",
    )
    form = await form_service.create_form(db, current_user.id, data)
    return FormMutationResponse(
        message="Form created successfully",
        form=FormResponse.from_form(form),
    )


@router.get("/{form_id}", response_model=FormResponse)
async def get_form(form_id: str, db: DbSession, current_user: CurrentUser):
    form = await form_service.get_owned_form_or_404(db, form_id, current_user.id)
    count = await form_service.count_responses(db, form.id)
    return FormResponse.from_form(form, count)


@router.put("/{form_id}", response_model=FormMutationResponse)
async def update_form(form_id: str, data: FormUpdate, db: DbSession, current_user: CurrentUser):
    """
    Update title, description, status and/or questions.

    Supplying questions deletes and recreates all of them with new ids.
    """
    form = await form_service.get_owned_form_or_404(db, form_id, current_user.id)
    form = await form_service.update_form(db, form, data)
    count = await form_service.count_responses(db, form.id)
    return FormMutationResponse(
        message="Form updated successfully",
        form=FormResponse.from_form(form, count),
    )


@router.delete("/{form_id}", response_model=MessageResponse)
async def delete_form(form_id: str, db: DbSession, current_user: CurrentUser):
    await form_service.delete_form(db, form_id, current_user.id)
    return MessageResponse(message="Form deleted successfully")


@router.put("/{form_id}/status", response_model=FormMutationResponse)
async def update_form_status(
    form_id: str,
    data: FormStatusUpdate,
    db: DbSession,
    current_user: CurrentUser,
):
    """Publish, unpublish or return a form to draft."""
    form = await form_service.get_owned_form_or_404(db, form_id, current_user.id)
    form = await form_service.set_status(db, form, data.status.value)
    count = await form_service.count_responses(db, form.id)
    return FormMutationResponse(
        message=STATUS_MESSAGES[data.status],
        form=FormResponse.from_form(form, count),
    )


@router.get("/{form_id}/responses", response_model=ResponseListResponse)
async def list_form_responses(
    form_id: str,
    db: DbSession,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    search: Optional[str] = Query(None),
    sentiment: SentimentFilter = Query("all"),
):
    """
    Processed responses with form-wide analytics.

    Analytics always cover every response. Filters narrow the table only,
    and are applied before the page is cut.
    """
    form = await form_service.get_owned_form_or_404(
        db, form_id, current_user.id, with_responses=True
    )
    snapshot = snapshot_form(form)
    report = build_form_report(snapshot)

    filtered = filter_responses(report.responses, search or "", sentiment)
    total = len(filtered)
    start = (page - 1) * limit
    page_items = filtered[start:start + limit]

    analytics = report.analytics
    return ResponseListResponse(
        form=FormOverview(
            id=form.id,
            title=form.title,
            description=form.description,
            status=form.status,
            created_at=form.created_at,
            total_responses=len(report.responses),
            last_response=report.responses[0].submitted_at if report.responses else None,
        ),
        questions=[QuestionResponse.model_validate(q) for q in form.questions],
        responses=[ProcessedResponseSchema.model_validate(r) for r in page_items],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
        analytics=AnalyticsSchema(
            response_rate=analytics.response_rate,
            avg_rating=analytics.avg_rating,
            completion_rate=analytics.completion_rate,
            avg_time_to_complete=analytics.avg_time_to_complete,
            top_keywords=analytics.top_keywords,
            sentiment_breakdown=SentimentBreakdown(**analytics.sentiment_breakdown),
        ),
        question_summaries=report.question_summaries,
    )


@router.get("/{form_id}/export")
async def export_form_responses(form_id: str, db: DbSession, current_user: CurrentUser):
    """Download every response as CSV, one column per current question."""
    form = await form_service.get_owned_form_or_404(
        db, form_id, current_user.id, with_responses=True
    )
    snapshot = snapshot_form(form)
    try:
        content = generate_csv(snapshot, settings.EXPORT_TIMEZONE)
    except ExportError:
        logger.exception(f"CSV export failed for form {form.id}")
        raise InternalError()

    return HTTPResponse(
        content=content,
        media_type=EXPORT_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(form.title)}"'
        },
    )
