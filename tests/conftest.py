"""Shared pytest fixtures for the Learntrack test suite."""

from collections.abc import AsyncGenerator

import httpx
import jwt
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from learntrack.config import settings
from learntrack.database import Base, get_db
from learntrack.models import Category, Lesson, QuizQuestion, Topic
from learntrack.services.catalog import SqlContentCatalog
from main import app

# ---------------------------------------------------------------------------
# Async engine & session fixtures (in-memory SQLite)
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture()
async def async_engine():
    """Create a fresh in-memory async engine per test."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide an async session that rolls back after each test."""
    session_factory = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture()
def catalog(db_session: AsyncSession) -> SqlContentCatalog:
    return SqlContentCatalog(db_session)


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTPX async client wired to the FastAPI app with test DB override."""

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience / data fixtures
# ---------------------------------------------------------------------------


def make_token(learner_id="42", **claims) -> str:
    payload = {settings.JWT_LEARNER_CLAIM: learner_id, **claims}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture()
def auth_headers() -> dict[str, str]:
    """Bearer token for learner 42, signed like the auth service signs it."""
    return {"Authorization": f"Bearer {make_token('42')}"}


@pytest.fixture()
async def seeded(db_session: AsyncSession) -> dict:
    """A topic with lessons [L1, L2, L3] and one question per difficulty."""
    category = Category(name="Backend Development", slug="backend", order_index=1)
    db_session.add(category)
    await db_session.flush()

    topic = Topic(
        category_id=category.id, name="REST APIs", slug="rest-apis", order_index=1
    )
    db_session.add(topic)
    await db_session.flush()

    # Inserted out of order on purpose; navigation must follow order_index
    l3 = Lesson(topic_id=topic.id, title="Lesson 3", slug="l3", content="three", order_index=3)
    l1 = Lesson(topic_id=topic.id, title="Lesson 1", slug="l1", content="one", order_index=1)
    l2 = Lesson(topic_id=topic.id, title="Lesson 2", slug="l2", content="two", order_index=2)
    db_session.add_all([l3, l1, l2])
    await db_session.flush()

    q1 = QuizQuestion(
        lesson_id=l1.id,
        question_text="Which option is right?",
        question_type="multiple_choice",
        options=["A", "B", "C", "D"],
        correct_answer="B",
        explanation="B is right.",
        difficulty="easy",
        order_index=1,
    )
    q_medium = QuizQuestion(
        lesson_id=l1.id,
        question_text="Which status code means No Content?",
        question_type="multiple_choice",
        options=["200", "201", "204", "404"],
        correct_answer="204",
        explanation="204 No Content.",
        difficulty="medium",
        order_index=2,
    )
    q_hard = QuizQuestion(
        lesson_id=l2.id,
        question_text="Which part of a JWT prevents tampering?",
        question_type="multiple_choice",
        options=["Header", "Payload", "Signature"],
        correct_answer="Signature",
        explanation="The signature covers header and payload.",
        difficulty="hard",
        order_index=1,
    )
    db_session.add_all([q1, q_medium, q_hard])
    await db_session.commit()

    return {
        "category": category,
        "topic": topic,
        "l1": l1,
        "l2": l2,
        "l3": l3,
        "q1": q1,
        "q_medium": q_medium,
        "q_hard": q_hard,
    }
