"""
Response listing schemas.

Built from the analytics engine's FormReport; nothing here is persisted.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.schemas.form import FormStatus, QuestionResponse
from app.services.analytics.sentiment import Sentiment

SentimentFilter = Literal["all", "positive", "neutral", "negative"]


class ProcessedResponseSchema(BaseModel):
    """One row of the responses table."""
    id: str
    submitted_at: datetime
    time_ago: str
    answers: dict[str, str]
    sentiment: Sentiment
    rating: Optional[int] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    class Config:
        from_attributes = True


class SentimentBreakdown(BaseModel):
    positive: int
    neutral: int
    negative: int


class AnalyticsSchema(BaseModel):
    response_rate: int
    avg_rating: float
    completion_rate: int
    avg_time_to_complete: str
    top_keywords: list[str] = []
    sentiment_breakdown: SentimentBreakdown

    class Config:
        from_attributes = True


class FormOverview(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    status: FormStatus
    created_at: Optional[datetime] = None
    total_responses: int = 0
    last_response: Optional[datetime] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int = Field(description="Responses matching the filters")
    total_pages: int


class ResponseListResponse(BaseModel):
    """Everything the responses dashboard renders."""
    form: FormOverview
    questions: list[QuestionResponse]
    responses: list[ProcessedResponseSchema]
    pagination: Pagination
    analytics: AnalyticsSchema
    question_summaries: dict[str, dict[str, int]]
