"""
RFC 7807 Problem Details exception handling.

Every error the API returns is a problem document with a machine-readable
code and a trace ID that matches the server logs.

See: https://datatracker.ietf.org/doc/html/rfc7807
"""

from typing import Optional, Dict, Any, List
from enum import Enum
from pydantic import BaseModel, Field
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import math
from datetime import datetime, timezone

from app.middleware.correlation import generate_id, get_request_id

logger = logging.getLogger(__name__)

PROBLEM_TYPE_BASE = "/problems"
INTERNAL_ERROR_DETAIL = "An unexpected error occurred"


def _get_trace_id() -> str:
    """Get trace ID from correlation context or generate a new one."""
    request_id = get_request_id()
    if request_id and request_id != "unknown":
        return request_id
    return generate_id()


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class ErrorCode(str, Enum):
    """Standardized error codes for the feedback forms API."""

    # Authentication & Authorization
    UNAUTHORIZED = "AUTH_001"
    FORBIDDEN = "AUTH_002"

    # Validation
    VALIDATION_ERROR = "VAL_001"

    # Resource
    NOT_FOUND = "RES_001"
    ALREADY_EXISTS = "RES_002"

    # Business Logic
    QUOTA_EXCEEDED = "BIZ_002"

    # Server
    INTERNAL_ERROR = "SRV_001"
    SERVICE_UNAVAILABLE = "SRV_002"


class ProblemDetail(BaseModel):
    """
    RFC 7807 Problem Details response schema.

    Attributes:
        type: URI reference identifying the problem type
        title: Short, human-readable summary
        status: HTTP status code
        detail: Human-readable explanation specific to this occurrence
        instance: URI reference identifying this specific occurrence
        code: Machine-readable error code for client handling
        timestamp: ISO 8601 timestamp of when the error occurred
        trace_id: Unique identifier for tracing in logs
        errors: List of field-level validation errors (for 422)
        retry_after: Seconds to wait before retrying (for rate limits)
        reset_time: Epoch milliseconds when the rate limit window resets
    """

    type: str = Field(
        default="about:blank",
        description="URI reference identifying the problem type"
    )
    title: str = Field(
        description="Short, human-readable summary of the problem"
    )
    status: int = Field(
        description="HTTP status code"
    )
    detail: str = Field(
        description="Human-readable explanation specific to this occurrence"
    )
    instance: Optional[str] = Field(
        default=None,
        description="URI reference for this specific occurrence"
    )
    code: str = Field(
        description="Machine-readable error code"
    )
    timestamp: str = Field(
        description="ISO 8601 timestamp"
    )
    trace_id: str = Field(
        description="Unique trace ID for debugging"
    )
    errors: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Field-level validation errors"
    )
    retry_after: Optional[int] = Field(
        default=None,
        description="Seconds to wait before retrying"
    )
    reset_time: Optional[int] = Field(
        default=None,
        description="Epoch milliseconds when the rate limit resets"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "type": "/problems/res-001",
                "title": "Not Found",
                "status": 404,
                "detail": "Form not found or access denied",
                "instance": "/api/v2/forms/4f1c2a9e-0d3b-4a57-9a0e-1b2c3d4e5f60",
                "code": "RES_001",
                "timestamp": "2026-01-29T10:30:00.000000Z",
                "trace_id": "abc123def456"
            }
        }
    }


def _problem_type(code: ErrorCode) -> str:
    return f"{PROBLEM_TYPE_BASE}/{code.value.lower().replace('_', '-')}"


class APIError(HTTPException):
    """
    Base exception for the API with RFC 7807 support.

    Usage:
        raise APIError(
            status_code=404,
            code=ErrorCode.NOT_FOUND,
            detail="Form not found",
        )
    """

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        title: Optional[str] = None,
        instance: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        retry_after: Optional[int] = None,
        reset_time: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.code = code
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.errors = errors
        self.retry_after = retry_after
        self.reset_time = reset_time
        self.trace_id = _get_trace_id()
        self.timestamp = _utc_timestamp()

        super().__init__(status_code=status_code, detail=detail, headers=headers)

    @staticmethod
    def _default_title(status_code: int) -> str:
        """Get default title based on status code."""
        titles = {
            400: "Bad Request",
            401: "Unauthorized",
            403: "Forbidden",
            404: "Not Found",
            409: "Conflict",
            422: "Validation Error",
            429: "Too Many Requests",
            500: "Internal Server Error",
            503: "Service Unavailable",
        }
        return titles.get(status_code, "Error")

    def to_problem_detail(self, instance: Optional[str] = None) -> ProblemDetail:
        """Convert to RFC 7807 ProblemDetail."""
        return ProblemDetail(
            type=_problem_type(self.code),
            title=self.title,
            status=self.status_code,
            detail=self.detail,
            instance=self.instance or instance,
            code=self.code.value,
            timestamp=self.timestamp,
            trace_id=self.trace_id,
            errors=self.errors,
            retry_after=self.retry_after,
            reset_time=self.reset_time,
        )


# Convenience exception classes

class NotFoundError(APIError):
    """Resource not found (404).

    Ownership failures raise this too, with the same message, so that a
    caller cannot probe which form ids exist.
    """

    def __init__(self, detail: str = "Resource not found", instance: Optional[str] = None):
        super().__init__(
            status_code=404,
            code=ErrorCode.NOT_FOUND,
            detail=detail,
            instance=instance,
        )


class ValidationError(APIError):
    """Validation error (422)."""

    def __init__(
        self,
        detail: str,
        errors: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(
            status_code=422,
            code=ErrorCode.VALIDATION_ERROR,
            detail=detail,
            errors=errors,
        )


class UnauthorizedError(APIError):
    """Authentication required (401)."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=401,
            code=ErrorCode.UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ConflictError(APIError):
    """Resource already exists (409)."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=409,
            code=ErrorCode.ALREADY_EXISTS,
            detail=detail,
        )


class RateLimitError(APIError):
    """Rate limit exceeded (429)."""

    def __init__(
        self,
        retry_after: int = 60,
        reset_time: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        headers = {
            "Retry-After": str(retry_after),
            "X-RateLimit-Remaining": "0",
        }
        if reset_time is not None:
            # Header carries seconds, body carries milliseconds
            headers["X-RateLimit-Reset"] = str(math.ceil(reset_time / 1000))
        super().__init__(
            status_code=429,
            code=ErrorCode.QUOTA_EXCEEDED,
            detail=detail or f"Rate limit exceeded. Try again in {retry_after} seconds.",
            retry_after=retry_after,
            reset_time=reset_time,
            headers=headers,
        )


class ServiceUnavailableError(APIError):
    """A backing service is down and the request cannot proceed (503)."""

    def __init__(self, detail: str = "Service temporarily unavailable"):
        super().__init__(
            status_code=503,
            code=ErrorCode.SERVICE_UNAVAILABLE,
            detail=detail,
        )


class InternalError(APIError):
    """Unexpected failure (500). The detail shown to callers is always opaque."""

    def __init__(self):
        super().__init__(
            status_code=500,
            code=ErrorCode.INTERNAL_ERROR,
            detail=INTERNAL_ERROR_DETAIL,
        )


# Exception handlers for FastAPI

def _add_cors_headers(
    response: JSONResponse,
    request: Request,
    allowed_origins: Optional[List[str]],
) -> JSONResponse:
    # Error responses bypass CORSMiddleware when raised from handlers
    if allowed_origins:
        origin = request.headers.get("origin", "")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
    return response


def create_problem_response(
    status_code: int,
    code: ErrorCode,
    detail: str,
    request: Request,
    errors: Optional[List[Dict[str, Any]]] = None,
    trace_id: Optional[str] = None,
    allowed_origins: Optional[List[str]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Create a RFC 7807 compliant JSON response with CORS headers."""
    problem = ProblemDetail(
        type=_problem_type(code),
        title=APIError._default_title(status_code),
        status=status_code,
        detail=detail,
        instance=str(request.url.path),
        code=code.value,
        timestamp=_utc_timestamp(),
        trace_id=trace_id or _get_trace_id(),
        errors=errors,
    )

    response = JSONResponse(
        status_code=status_code,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
        headers=headers,
    )
    return _add_cors_headers(response, request, allowed_origins)


async def api_exception_handler(
    request: Request,
    exc: APIError,
    allowed_origins: Optional[List[str]] = None,
) -> JSONResponse:
    """Handle APIError with RFC 7807 response."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"APIError: {exc.code.value} - {exc.detail}",
        extra={
            "trace_id": exc.trace_id,
            "status_code": exc.status_code,
            "path": request.url.path,
        }
    )

    response = JSONResponse(
        status_code=exc.status_code,
        content=exc.to_problem_detail(instance=str(request.url.path)).model_dump(exclude_none=True),
        media_type="application/problem+json",
        headers=exc.headers,
    )
    return _add_cors_headers(response, request, allowed_origins)


def create_exception_handlers(allowed_origins: List[str]):
    """
    Create exception handlers with configured allowed origins for CORS.

    Usage in main.py:
        handlers = create_exception_handlers(allowed_origins)
        app.add_exception_handler(APIError, handlers["api"])
        app.add_exception_handler(RequestValidationError, handlers["validation"])
        app.add_exception_handler(Exception, handlers["generic"])
    """

    async def handle_api_exception(request: Request, exc: APIError) -> JSONResponse:
        return await api_exception_handler(request, exc, allowed_origins)

    async def handle_http_exception(
        request: Request,
        exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle standard HTTPException with RFC 7807 response."""
        code_map = {
            400: ErrorCode.VALIDATION_ERROR,
            401: ErrorCode.UNAUTHORIZED,
            403: ErrorCode.FORBIDDEN,
            404: ErrorCode.NOT_FOUND,
            409: ErrorCode.ALREADY_EXISTS,
            422: ErrorCode.VALIDATION_ERROR,
            429: ErrorCode.QUOTA_EXCEEDED,
            500: ErrorCode.INTERNAL_ERROR,
            503: ErrorCode.SERVICE_UNAVAILABLE,
        }

        code = code_map.get(exc.status_code, ErrorCode.INTERNAL_ERROR)

        return create_problem_response(
            status_code=exc.status_code,
            code=code,
            detail=str(exc.detail),
            request=request,
            allowed_origins=allowed_origins,
            headers=getattr(exc, "headers", None),
        )

    async def handle_validation_exception(
        request: Request,
        exc: RequestValidationError
    ) -> JSONResponse:
        """Handle Pydantic validation errors with field-level details."""
        errors = []
        for error in exc.errors():
            errors.append({
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            })

        return create_problem_response(
            status_code=422,
            code=ErrorCode.VALIDATION_ERROR,
            detail="Request validation failed",
            request=request,
            errors=errors,
            allowed_origins=allowed_origins,
        )

    async def handle_generic_exception(
        request: Request,
        exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions with an opaque RFC 7807 response."""
        trace_id = _get_trace_id()

        # Full traceback stays server-side
        logger.exception(
            f"Unhandled exception: {type(exc).__name__}",
            extra={"trace_id": trace_id, "path": request.url.path},
        )

        return create_problem_response(
            status_code=500,
            code=ErrorCode.INTERNAL_ERROR,
            detail=INTERNAL_ERROR_DETAIL,
            request=request,
            trace_id=trace_id,
            allowed_origins=allowed_origins,
        )

    return {
        "api": handle_api_exception,
        "http": handle_http_exception,
        "validation": handle_validation_exception,
        "generic": handle_generic_exception,
    }
