# Security module
from app.security.rate_limiter import RateLimiter, get_client_ip, get_rate_limiter

__all__ = [
    "RateLimiter",
    "get_client_ip",
    "get_rate_limiter",
]
