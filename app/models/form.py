"""
Feedback form models.

A Form owns an ordered list of Questions and collects anonymous Responses.
Each Response holds one Answer per answered question.

Answer text is stored untyped: free text, the chosen option of a multiple
choice question, or a stringified 1-5 rating. The referenced question's type
decides how it is read (see app/services/analytics/answers.py).
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text,
    ForeignKey, Enum as SQLEnum, JSON
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


FORM_STATUSES = ('DRAFT', 'ACTIVE', 'INACTIVE')
QUESTION_TYPES = ('TEXT', 'TEXTAREA', 'MULTIPLE_CHOICE', 'RATING')


class Form(Base):
    """
    A feedback form. Only ACTIVE forms are reachable through their public URL.
    """
    __tablename__ = "forms"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(Integer, ForeignKey("api_users.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text)

    status = Column(
        SQLEnum(*FORM_STATUSES, name='form_status_enum'),
        default='DRAFT',
        nullable=False,
    )

    # Slug used in the public link, e.g. "product-feedback-3f9a1c2b"
    public_url = Column(String(300), unique=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=_utcnow)

    # Relationships
    owner = relationship("User", back_populates="forms")
    questions = relationship(
        "Question",
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="Question.order_index",
    )
    responses = relationship("Response", back_populates="form", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Form id={self.id} title='{self.title}' status={self.status}>"


class Question(Base):
    """
    A single question. Editing a form deletes and recreates all of its
    questions, so ids are not stable across edits.
    """
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=_uuid)
    form_id = Column(String(36), ForeignKey("forms.id"), nullable=False, index=True)

    question_text = Column(Text, nullable=False)
    question_type = Column(
        SQLEnum(*QUESTION_TYPES, name='question_type_enum'),
        nullable=False,
    )
    is_required = Column(Boolean, default=False, nullable=False)
    order_index = Column(Integer, default=0, nullable=False)

    # For multiple choice
    options = Column(JSON)  # ["Option A", "Option B", "Option C"]

    form = relationship("Form", back_populates="questions")

    def __repr__(self):
        return f"<Question id={self.id} type={self.question_type}>"


class Response(Base):
    """
    One anonymous submission of a form.
    """
    __tablename__ = "responses"

    id = Column(String(36), primary_key=True, default=_uuid)
    form_id = Column(String(36), ForeignKey("forms.id"), nullable=False, index=True)

    submitted_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True)

    # Stored as received, never parsed
    ip_address = Column(String(100))
    user_agent = Column(Text)

    form = relationship("Form", back_populates="responses")
    answers = relationship("Answer", back_populates="response", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Response id={self.id} form_id={self.form_id}>"


class Answer(Base):
    """
    The answer to one question within a response.

    question_id is intentionally not a foreign key: answers outlive the
    questions they were given for when a form is edited.
    """
    __tablename__ = "answers"

    id = Column(String(36), primary_key=True, default=_uuid)
    response_id = Column(String(36), ForeignKey("responses.id"), nullable=False, index=True)
    question_id = Column(String(36), nullable=False, index=True)

    answer_text = Column(Text)

    response = relationship("Response", back_populates="answers")

    def __repr__(self):
        return f"<Answer response_id={self.response_id} question_id={self.question_id}>"
