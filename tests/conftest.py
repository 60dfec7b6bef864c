import os
from datetime import datetime, timedelta, timezone

# Must be set before app modules build the engine and settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.main import app
from app.database import Base, get_db
from app.api.deps import get_password_hash
from app.models.user import User
from app.models.form import Form, Question, Response, Answer
from app.services.form_service import generate_public_url
from app.security.rate_limiter import reset_rate_limits

# Test database URL (SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

TEST_PASSWORD = "testpassword123"


@pytest.fixture(autouse=True)
def clear_rate_limits():
    """Every test starts with fresh rate limit windows."""
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest_asyncio.fixture
async def test_db():
    """Create test database and tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_user(test_db: AsyncSession):
    """Create a test user."""
    user = User(
        email="test@example.com",
        hashed_password=get_password_hash(TEST_PASSWORD),
        name="Test User",
        company="Acme Feedback",
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()
    await test_db.refresh(user)
    return user


@pytest_asyncio.fixture
async def other_user(test_db: AsyncSession):
    """A second account that owns nothing of test_user's."""
    user = User(
        email="other@example.com",
        hashed_password=get_password_hash(TEST_PASSWORD),
        name="Other User",
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()
    await test_db.refresh(user)
    return user


@pytest_asyncio.fixture
async def client(test_db: AsyncSession):
    """Create test client with overridden database."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def authenticated_client(client: AsyncClient, test_user: User):
    """Create authenticated test client."""
    response = await client.post(
        "/api/v2/auth/login",
        json={"email": test_user.email, "password": TEST_PASSWORD},
    )
    token = response.json()["access_token"]

    client.headers["Authorization"] = f"Bearer {token}"
    return client



@pytest_asyncio.fixture
async def make_form(test_db: AsyncSession, test_user: User):
    """
    Persist a form with a textarea, rating and multiple choice question.

    Usage:
        form = await make_form(status="ACTIVE")
        form = await make_form(owner=other_user)
    """

    async def _make_form(title="Customer Feedback", status="ACTIVE", owner=None):
        form = Form(
            user_id=(owner or test_user).id,
            title=title,
            description="Tell us how we did",
            status=status,
            public_url=generate_public_url(title),
        )
        form.questions = [
            Question(
                question_text="What did you think?",
                question_type="TEXTAREA",
                is_required=True,
                order_index=0,
            ),
            Question(
                question_text="How would you rate us?",
                question_type="RATING",
                is_required=False,
                order_index=1,
            ),
            Question(
                question_text="Which plan are you on?",
                question_type="MULTIPLE_CHOICE",
                is_required=False,
                order_index=2,
                options=["Free", "Pro", "Enterprise"],
            ),
        ]
        test_db.add(form)
        await test_db.commit()
        return form

    return _make_form


@pytest_asyncio.fixture
async def add_response(test_db: AsyncSession):
    """
    Persist a response; answers are given as {question_id: answer_text}.

    Usage:
        await add_response(form, {q.id: "Great"}, age=timedelta(hours=2))
    """

    async def _add_response(form, answers, age=timedelta(minutes=5), ip_address="203.0.113.10"):
        response = Response(
            form_id=form.id,
            submitted_at=datetime.now(timezone.utc) - age,
            ip_address=ip_address,
            user_agent="pytest",
            answers=[
                Answer(question_id=question_id, answer_text=text)
                for question_id, text in answers.items()
            ],
        )
        test_db.add(response)
        await test_db.commit()
        return response

    return _add_response
