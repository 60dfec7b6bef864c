"""
Rate Limiting Module

Fixed-window request limiting for public and abuse-prone endpoints
(anonymous form submission, registration, form creation).

Storage sits behind RateLimiterBackend so a single process can keep counters
in memory while multi-instance deployments share them through Redis.
"""

import threading
import time
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

import redis
from fastapi import Request

from app.exceptions import RateLimitError, ServiceUnavailableError

logger = logging.getLogger(__name__)

FALLBACK_CLIENT_IP = "0.0.0.1"


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single rate limit check."""
    allowed: bool
    remaining: int
    reset_time: float  # epoch seconds when the current window ends

    @property
    def reset_time_ms(self) -> int:
        return int(self.reset_time * 1000)

    @property
    def retry_after(self) -> int:
        return max(1, int(self.reset_time - time.time()))


@dataclass
class RateLimitWindow:
    """Track requests within a time window."""
    count: int
    reset_time: float


class RateLimiterBackend(ABC):
    """Abstract base class for rate limiter backends."""

    @abstractmethod
    def check_and_increment(self, key: str, limit: int, window_seconds: int) -> RateLimitDecision:
        """
        Count a request against key and report whether it is allowed.

        Denied requests are not counted.
        """

    def reset(self) -> None:
        """Forget all counters (tests and admin override)."""


class InMemoryRateLimiterBackend(RateLimiterBackend):
    """
    Process-local counters.

    Expired windows are swept whenever a key is read, so the store stays
    bounded by the number of clients active within one window.
    """

    def __init__(self):
        self._windows: Dict[str, RateLimitWindow] = {}
        self._lock = threading.Lock()

    def _sweep(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if w.reset_time < now]
        for key in expired:
            del self._windows[key]

    def check_and_increment(self, key: str, limit: int, window_seconds: int) -> RateLimitDecision:
        now = time.time()
        with self._lock:
            self._sweep(now)
            window = self._windows.get(key)

            if window is None:
                window = RateLimitWindow(count=1, reset_time=now + window_seconds)
                self._windows[key] = window
                return RateLimitDecision(True, limit - 1, window.reset_time)

            if window.count >= limit:
                return RateLimitDecision(False, 0, window.reset_time)

            window.count += 1
            return RateLimitDecision(True, limit - window.count, window.reset_time)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)


class RedisRateLimiterBackend(RateLimiterBackend):
    """
    Redis-backed counters shared across instances.

    INCR + EXPIRE NX in one MULTI/EXEC pipeline: the first request of a
    window creates the key with a TTL, later ones only increment it.
    A denied request is taken back with DECR.
    """

    def __init__(self, redis_client, fail_closed: bool = False):
        """
        Args:
            redis_client: Redis client instance
            fail_closed: If True, reject requests when Redis is unavailable
        """
        self.redis = redis_client
        self.fail_closed = fail_closed

    def check_and_increment(self, key: str, limit: int, window_seconds: int) -> RateLimitDecision:
        now = time.time()
        try:
            pipe = self.redis.pipeline()
            pipe.incr(key)
            pipe.expire(key, window_seconds, nx=True)
            pipe.pttl(key)
            count, _, ttl_ms = pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Redis rate limit error: {e}")
            if self.fail_closed:
                raise ServiceUnavailableError("Rate limiting service temporarily unavailable")
            # Fail open - allow request if Redis is unavailable
            return RateLimitDecision(True, limit, now + window_seconds)

        reset_time = now + (ttl_ms / 1000 if ttl_ms and ttl_ms > 0 else window_seconds)
        if count > limit:
            try:
                self.redis.decr(key)
            except redis.RedisError as e:
                logger.error(f"Redis rate limit error: {e}")
            return RateLimitDecision(False, 0, reset_time)
        return RateLimitDecision(True, limit - count, reset_time)

    def reset(self) -> None:
        # Shared counters are never flushed from application code
        pass


class RateLimiter:
    """
    A named limit: at most `requests` per `window_seconds` per key.

    Usage:
        limiter = RateLimiter("form_submission", requests=5, window_seconds=3600)
        limiter.enforce(client_ip)
    """

    def __init__(
        self,
        name: str,
        requests: int,
        window_seconds: int,
        backend: Optional[RateLimiterBackend] = None,
    ):
        self.name = name
        self.requests = requests
        self.window_seconds = window_seconds
        self.backend = backend or InMemoryRateLimiterBackend()

    def _key(self, identifier: str) -> str:
        return f"rate_limit:{self.name}:{identifier}"

    def check(self, identifier: str) -> RateLimitDecision:
        return self.backend.check_and_increment(
            self._key(identifier), self.requests, self.window_seconds
        )

    def enforce(self, identifier: str, detail: Optional[str] = None) -> RateLimitDecision:
        """
        Check the limit and raise when it is exhausted.

        Raises:
            RateLimitError: 429 carrying the window reset time
        """
        decision = self.check(identifier)
        if not decision.allowed:
            logger.warning(
                f"Rate limit exceeded: {self.name}",
                extra={"retry_after": decision.retry_after},
            )
            raise RateLimitError(
                retry_after=decision.retry_after,
                reset_time=decision.reset_time_ms,
                detail=detail,
            )
        return decision

    def reset(self) -> None:
        self.backend.reset()


# Limits per endpoint family: (requests, window in seconds)
RATE_LIMIT_CONFIGS = {
    "form_submission": (5, 60 * 60),
    "form_creation": (10, 24 * 60 * 60),
    "registration": (3, 60 * 60),
}

_backend: Optional[RateLimiterBackend] = None
_limiters: Dict[str, RateLimiter] = {}


def _create_backend() -> RateLimiterBackend:
    """Redis when configured and reachable, in-memory otherwise."""
    from app.config import settings

    if not settings.RATE_LIMIT_REDIS_ENABLED or not settings.REDIS_URL:
        return InMemoryRateLimiterBackend()

    try:
        client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        client.ping()
    except redis.RedisError as e:
        logger.warning(f"Failed to connect to Redis for rate limiting: {e}. Falling back to in-memory.")
        return InMemoryRateLimiterBackend()

    logger.info("Redis rate limiting enabled")
    return RedisRateLimiterBackend(client, fail_closed=settings.RATE_LIMIT_FAIL_CLOSED)


def get_rate_limiter(name: str) -> RateLimiter:
    """Get or create the process-wide limiter for a configured endpoint family."""
    global _backend
    if name not in _limiters:
        if _backend is None:
            _backend = _create_backend()
        requests, window_seconds = RATE_LIMIT_CONFIGS[name]
        _limiters[name] = RateLimiter(name, requests, window_seconds, backend=_backend)
    return _limiters[name]


def reset_rate_limits() -> None:
    """Clear every in-memory counter."""
    for limiter in _limiters.values():
        limiter.reset()


def get_client_ip(request: Request) -> str:
    """
    Best-effort client address, honouring the usual proxy headers.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    vercel_forwarded = request.headers.get("x-vercel-forwarded-for")
    if vercel_forwarded:
        return vercel_forwarded.split(",")[0].strip()

    if request.client and request.client.host:
        return request.client.host

    return FALLBACK_CLIENT_IP
