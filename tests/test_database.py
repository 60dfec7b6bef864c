"""Tests for engine configuration and the get_db dependency."""
import pytest

from app.config import settings
from app.database import engine_options, get_db


class TestEngineOptions:

    def test_sqlite_uses_defaults(self):
        assert engine_options("sqlite+aiosqlite:///./test.db") == {}

    def test_postgres_pool_from_settings(self):
        options = engine_options("postgresql+asyncpg://localhost/feedback")
        assert options["pool_size"] == settings.DB_POOL_SIZE
        assert options["max_overflow"] == settings.DB_MAX_OVERFLOW
        assert options["pool_pre_ping"] is True


class TestGetDb:

    @pytest.mark.asyncio
    async def test_yields_session_and_reraises(self):
        dependency = get_db()
        session = await dependency.__anext__()
        assert session is not None

        with pytest.raises(RuntimeError):
            await dependency.athrow(RuntimeError("request failed"))
