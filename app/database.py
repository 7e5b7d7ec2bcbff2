"""Database engine, sessions and store-error helpers."""

import os
from typing import AsyncGenerator

from dotenv import load_dotenv
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

load_dotenv()


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is required")

SQL_DEBUG = os.getenv("SQL_DEBUG", "false").lower() == "true"

engine = create_async_engine(
    DATABASE_URL,
    echo=SQL_DEBUG,
    pool_pre_ping=True,
    future=True,
)

# Callers keep using returned objects after commit
AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# PostgreSQL SQLSTATE unique_violation
UNIQUE_VIOLATION = "23505"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session dependency."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


db_session = get_db


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Dependency for long-lived consumers that open their own sessions."""
    return AsyncSessionLocal


def is_unique_violation(error: IntegrityError) -> bool:
    """Tell a duplicate-key failure apart from other integrity errors."""
    orig = getattr(error, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(orig)


async def init_db() -> None:
    """Startup hook; the schema itself is owned by alembic."""
    pass


async def close_db() -> None:
    """Close database connections on shutdown."""
    await engine.dispose()
