from app.schemas.auth import (
    UserCreate,
    UserResponse,
    Token,
    TokenData,
    LoginRequest,
)
from app.schemas.form import (
    FormCreate,
    FormUpdate,
    FormStatusUpdate,
    FormResponse,
    PublicForm,
    SubmissionCreate,
    SubmissionResult,
)
from app.schemas.response import ResponseListResponse

__all__ = [
    "UserCreate",
    "UserResponse",
    "Token",
    "TokenData",
    "LoginRequest",
    "FormCreate",
    "FormUpdate",
    "FormStatusUpdate",
    "FormResponse",
    "PublicForm",
    "SubmissionCreate",
    "SubmissionResult",
    "ResponseListResponse",
]
