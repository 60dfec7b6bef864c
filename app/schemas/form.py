"""
Form Schemas

Request and response bodies for form management and the public form endpoints.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.config import settings
from app.services.analytics.answers import QuestionType


class FormStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


STATUS_MESSAGES = {
    FormStatus.DRAFT: "Form saved as draft",
    FormStatus.ACTIVE: "Form published successfully",
    FormStatus.INACTIVE: "Form unpublished",
}


# Question Schemas

class QuestionBase(BaseModel):
    """Base question schema."""
    question_text: str = Field(..., min_length=1)
    question_type: QuestionType
    is_required: bool = False
    options: Optional[list[str]] = None
    order_index: int = 0


class QuestionCreate(QuestionBase):
    """Schema for creating a question."""
    pass


class QuestionResponse(QuestionBase):
    """Question as stored."""
    id: str

    class Config:
        from_attributes = True


# Form Schemas

class FormBase(BaseModel):
    """Base form schema."""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class FormCreate(FormBase):
    """Schema for creating a form."""
    questions: list[QuestionCreate] = Field(..., min_length=1)


class FormUpdate(BaseModel):
    """
    Schema for updating a form.

    Supplying questions replaces every existing question.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[FormStatus] = None
    questions: Optional[list[QuestionCreate]] = None


class FormStatusUpdate(BaseModel):
    status: FormStatus


class FormResponse(FormBase):
    """Form with its questions and how many responses it has collected."""
    id: str
    status: FormStatus
    public_url: str
    share_url: Optional[str] = None
    questions: list[QuestionResponse] = []
    response_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_form(cls, form, response_count: int = 0) -> "FormResponse":
        return cls(
            id=form.id,
            title=form.title,
            description=form.description,
            status=form.status,
            public_url=form.public_url,
            share_url=f"{settings.PUBLIC_FORM_BASE_URL.rstrip('/')}/{form.public_url}",
            questions=[QuestionResponse.model_validate(q) for q in form.questions],
            response_count=response_count,
            created_at=form.created_at,
            updated_at=form.updated_at,
        )


class FormMutationResponse(BaseModel):
    """Confirmation message plus the form after the change."""
    message: str
    form: FormResponse


class MessageResponse(BaseModel):
    message: str


# Public Schemas

class PublicAuthor(BaseModel):
    name: str
    company: Optional[str] = None


class PublicForm(FormBase):
    """An ACTIVE form as shown to respondents."""
    id: str
    questions: list[QuestionResponse] = []
    author: PublicAuthor
    created_at: Optional[datetime] = None


class SubmissionAnswer(BaseModel):
    question_id: str
    answer_text: str = Field(..., min_length=1)

    @field_validator("question_id")
    @classmethod
    def validate_question_id(cls, v: str) -> str:
        """Question ids are UUIDs; normalise to the stored lower-case form."""
        try:
            return str(uuid.UUID(v))
        except ValueError:
            raise ValueError("question_id must be a UUID")


class SubmissionCreate(BaseModel):
    """Schema for submitting a form response."""
    answers: list[SubmissionAnswer] = Field(..., min_length=1)


class SubmissionResult(BaseModel):
    message: str = "Response submitted successfully"
    response_id: str
    submitted_at: datetime
