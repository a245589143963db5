"""Pytest configuration for all tests."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from contexthub.core.config import Settings
from contexthub.infrastructure.persistence import models  # noqa: F401
from contexthub.infrastructure.persistence.database import Base


@pytest.fixture
def settings() -> Settings:
    """Settings for tests, independent of any .env file."""
    return Settings(_env_file=None, environment="testing", log_level="DEBUG")


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session.

    Uses an in-memory SQLite database for testing.
    """
    # Create in-memory SQLite database
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def posts_payload() -> dict:
    """Collection type payload used across service tests."""
    payload = {
        "key": "posts",
        "name": {"en": "Posts"},
        "fields": [
            {"key": "title", "type": "string", "required": True, "indexed": True},
            {"key": "body", "type": "text"},
            {"key": "views", "type": "number"},
            {"key": "featured", "type": "boolean"},
            {"key": "publishedOn", "type": "date", "indexed": True},
            {
                "key": "tags",
                "type": "enum",
                "indexed": True,
                "options": [{"value": "news"}, {"value": "tech"}, {"value": "life"}],
                "settings": {"multiple": True},
            },
            {"key": "code", "type": "string", "unique": True},
            {"key": "author", "type": "ref", "ref": "authors"},
            {"key": "cover", "type": "media"},
        ],
        "settings": {"slugField": "title"},
    }
    return payload


@pytest.fixture
def authors_payload() -> dict:
    payload = {
        "key": "authors",
        "name": {"en": "Authors"},
        "fields": [
            {"key": "name", "type": "string", "required": True, "indexed": True},
            {"key": "email", "type": "string", "unique": True},
        ],
        "settings": {"slugField": "name"},
    }
    return payload
