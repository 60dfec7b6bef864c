"""
Database engine and session handling.

One async engine per process. Sessions come from get_db() and never
expire loaded objects on commit, so routers can keep returning the ORM
rows they just wrote.

SECURITY: the connection URL is never logged and SQL echo is off in
production (see Settings.sqlalchemy_echo).
"""

import logging
import time

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from app.config import settings

logger = logging.getLogger(__name__)

# Statements are truncated to this many characters in slow query warnings
SLOW_QUERY_LOG_CHARS = 200


def engine_options(database_url: str) -> dict:
    """Pool options for PostgreSQL. SQLite (tests) keeps SQLAlchemy's defaults."""
    if database_url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.sqlalchemy_echo,
    **engine_options(settings.DATABASE_URL),
)


def _start_timer(conn, cursor, statement, parameters, context, executemany):
    conn.info.setdefault("query_start_time", []).append(time.monotonic())


def _log_slow_query(conn, cursor, statement, parameters, context, executemany):
    started = conn.info.get("query_start_time")
    if not started:
        return
    elapsed_ms = (time.monotonic() - started.pop()) * 1000
    if elapsed_ms < settings.SLOW_QUERY_THRESHOLD_MS:
        return
    # Parameters may hold answer text or password hashes: log the count only
    logger.warning(
        "Slow query (%.0fms, %d params): %s",
        elapsed_ms,
        len(parameters) if parameters else 0,
        statement[:SLOW_QUERY_LOG_CHARS],
    )


event.listen(engine.sync_engine, "before_cursor_execute", _start_timer)
event.listen(engine.sync_engine, "after_cursor_execute", _log_slow_query)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for users, forms, questions, responses and answers."""


async def get_db():
    """
    FastAPI dependency yielding one session per request.

    Routes and services commit explicitly. Anything left uncommitted when
    the request fails is rolled back here.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """Create missing tables. Production schemas are managed by Alembic."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
