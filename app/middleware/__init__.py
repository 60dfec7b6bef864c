"""
Middleware modules for the feedback forms API.

- Correlation/request IDs for log correlation and problem trace IDs
- Access logging with Server-Timing headers
"""

from .correlation import (
    CorrelationIdMiddleware,
    CorrelationLogFilter,
    correlation_id_ctx,
    request_id_ctx,
)

__all__ = [
    "CorrelationIdMiddleware",
    "CorrelationLogFilter",
    "correlation_id_ctx",
    "request_id_ctx",
]
