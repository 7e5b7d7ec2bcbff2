import os
import uuid
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace
from typing import Any, AsyncGenerator, Generator
from unittest.mock import AsyncMock, MagicMock

# app.database requires DATABASE_URL at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402
from dotenv import load_dotenv  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from app.database import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models.api.conversations import ConversationResponse  # noqa: E402
from app.models.db import ProfileModel, RoomModel, StudentProfileModel  # noqa: E402
from app.realtime.feed import ChangeFeed  # noqa: E402
from app.repositories.conversation_repository import ConversationRepository  # noqa: E402

load_dotenv()


@pytest.fixture(scope="function")
async def test_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite engine; every session gets its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'homeshare.db'}",
        poolclass=NullPool,
        future=True,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Clean up
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def test_db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session for integration tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
def feed() -> ChangeFeed:
    """A change feed private to the test."""
    return ChangeFeed()


@pytest.fixture(scope="function")
async def homeshare(
    session_factory: async_sessionmaker[AsyncSession],
) -> SimpleNamespace:
    """A host with one room, two applicant students and an unrelated host."""
    ids = SimpleNamespace(
        host_id=uuid.uuid4(),
        other_host_id=uuid.uuid4(),
        student_id=uuid.uuid4(),
        rival_id=uuid.uuid4(),
        room_id=uuid.uuid4(),
    )
    async with session_factory() as session:
        session.add_all(
            [
                ProfileModel(
                    id=ids.host_id,
                    user_type="elderly",
                    full_name="Maria Silva",
                    age=78,
                    bio="Retired librarian",
                    location="Lisboa",
                ),
                ProfileModel(
                    id=ids.other_host_id,
                    user_type="elderly",
                    full_name="Joaquim Costa",
                    age=81,
                    location="Porto",
                ),
                ProfileModel(
                    id=ids.student_id,
                    user_type="student",
                    full_name="Ana Pereira",
                    age=21,
                    bio="Engineering student",
                    location="Lisboa",
                ),
                ProfileModel(
                    id=ids.rival_id,
                    user_type="student",
                    full_name="Tomás Reis",
                    age=23,
                    location="Lisboa",
                ),
            ]
        )
        await session.flush()
        session.add_all(
            [
                StudentProfileModel(
                    id=ids.student_id,
                    university="Universidade de Lisboa",
                    course="Engenharia Informática",
                    student_type="erasmus",
                ),
                RoomModel(
                    id=ids.room_id,
                    elderly_id=ids.host_id,
                    title="Quarto luminoso em Alvalade",
                    location="Lisboa",
                    monthly_price=Decimal("250.00"),
                    total_monthly_price=Decimal("300.00"),
                    is_available=True,
                ),
            ]
        )
        await session.commit()
    return ids


@pytest.fixture(scope="function")
async def mock_db() -> AsyncGenerator[AsyncMock, None]:
    """Create a mock database session for unit tests."""
    # Use mock to avoid database connection issues in unit tests
    mock_session = AsyncMock()
    mock_session.commit = AsyncMock()
    mock_session.rollback = AsyncMock()
    mock_session.close = AsyncMock()
    mock_session.refresh = AsyncMock()
    mock_session.flush = AsyncMock()
    mock_session.execute = AsyncMock()
    mock_session.add = MagicMock()  # add is sync, not async

    yield mock_session


@pytest.fixture
def client() -> Generator[TestClient, Any, None]:
    """Create a test client for the FastAPI app."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
async def conversation(
    session_factory: async_sessionmaker[AsyncSession], homeshare: SimpleNamespace
) -> ConversationResponse:
    """Conversation between the host and the first student about the room."""
    async with session_factory() as session:
        return await ConversationRepository(session).create_for_pairing(
            room_id=homeshare.room_id,
            elderly_id=homeshare.host_id,
            student_id=homeshare.student_id,
        )
