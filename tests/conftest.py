"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession

from academy.auth.jwt import create_access_token, reset_keys
from academy.config import get_settings
from academy.database import close_db, get_engine, get_session, init_db
from academy.db.base import Base
from academy.db.models import Quiz, QuizQuestion, User
from academy.main import create_app

# Two-question quiz: single answer, then a multi-select.
SAMPLE_QUESTIONS: list[dict[str, Any]] = [
    {
        "text": "What is 2 + 2?",
        "options": ["3", "4", "5"],
        "correct": ["4"],
    },
    {
        "text": "Select all prime numbers",
        "options": ["2", "3", "4", "5", "6", "7"],
        "correct": ["2", "3", "5", "7"],
    },
]


@pytest.fixture(scope="session")
def jwt_keys(tmp_path_factory: pytest.TempPathFactory) -> tuple[str, str]:
    """Generate an RSA key pair once per test run."""
    key_dir = tmp_path_factory.mktemp("academy_test_keys")
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    private_path = key_dir / "jwt_private.pem"
    public_path = key_dir / "jwt_public.pem"
    private_path.write_bytes(private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ))
    public_path.write_bytes(private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ))
    return str(private_path), str(public_path)


@pytest.fixture(autouse=True)
def _test_settings(jwt_keys: tuple[str, str], monkeypatch: pytest.MonkeyPatch):
    """Point settings at the generated keys and reset every cache that reads them."""
    private_path, public_path = jwt_keys
    monkeypatch.setenv("ACADEMY_JWT_PRIVATE_KEY_PATH", private_path)
    monkeypatch.setenv("ACADEMY_JWT_PUBLIC_KEY_PATH", public_path)
    monkeypatch.setenv("ACADEMY_LOG_FORMAT", "console")
    get_settings.cache_clear()
    reset_keys()
    yield
    get_settings.cache_clear()
    reset_keys()


def _sqlite_on_connect(dbapi_connection: Any, _connection_record: Any) -> None:  # noqa: ANN401
    # Hand transaction control to SQLAlchemy so SAVEPOINTs nest properly,
    # and use WAL so test-side reads never block request-side writes.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def _sqlite_on_begin(conn: Any) -> None:  # noqa: ANN401
    conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[None, None]:
    """Fresh SQLite database per test with the full schema created."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'academy.db'}")
    engine = get_engine()
    event.listen(engine.sync_engine, "connect", _sqlite_on_connect)
    event.listen(engine.sync_engine, "begin", _sqlite_on_begin)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    await close_db()


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for setup and assertions."""
    sessions = get_session()
    session = await anext(sessions)
    yield session
    await sessions.aclose()


@pytest_asyncio.fixture
async def client(database) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app. Redis is not initialized."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory: insert and commit a user."""

    async def _make_user(role: str = "student", display_name: str | None = None) -> User:
        user = User(
            display_name=display_name or f"{role}-user",
            role=role,
            created_at=datetime.now(timezone.utc),
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
def make_quiz(db_session: AsyncSession) -> Callable[..., Awaitable[Quiz]]:
    """Factory: insert and commit a quiz with its questions."""

    async def _make_quiz(
        questions: list[dict[str, Any]] | None = None,
        passing_score: int = 60,
        time_limit_minutes: int = 0,
        max_attempts: int = 3,
        title: str = "Arithmetic basics",
    ) -> Quiz:
        if questions is None:
            questions = SAMPLE_QUESTIONS
        quiz = Quiz(
            title=title,
            description="Warm-up quiz",
            passing_score=passing_score,
            time_limit_minutes=time_limit_minutes,
            max_attempts=max_attempts,
            created_at=datetime.now(timezone.utc),
            questions=[
                QuizQuestion(
                    question_text=q["text"],
                    question_type=q.get("type", "multiple_choice"),
                    options=list(q.get("options", [])),
                    correct_answer=list(q["correct"]),
                    order=i,
                )
                for i, q in enumerate(questions)
            ],
        )
        db_session.add(quiz)
        await db_session.commit()
        return quiz

    return _make_quiz


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Build a bearer header for a user."""

    def _auth_headers(user: User) -> dict[str, str]:
        token = create_access_token(user.id, role=user.role)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
