"""
Progress Store Database

Async SQLAlchemy engine and session factory for the learner progress table.

Sessions handed out by get_db() are plain unit-of-work handles: the progress
repository commits or rolls back each write itself, so a request never
commits on exit.

Usage:
    from progress_engine.db.base import get_db
    from progress_engine.services.progress.repository import SqlProgressRepository

    async def handler(db: AsyncSession = Depends(get_db)):
        record = await SqlProgressRepository(db).load("learner-1")
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from progress_engine.config import settings, yaml_config

_pool: dict[str, Any] = yaml_config.get("database", {})

# Connects lazily, so importing this module never touches Postgres
engine = create_async_engine(
    settings.POSTGRES_URL,
    pool_size=_pool.get("pool_size", 5),
    max_overflow=_pool.get("max_overflow", 10),
    pool_timeout=_pool.get("pool_timeout", 30),
    echo=settings.DEBUG,
)

# Records outlive their session in the service layer
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for the progress tables."""


# Registers learner_progress on Base.metadata
from progress_engine.db import models_progress  # noqa: F401, E402


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session for one request and close it afterwards."""
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """Create the progress table if it does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
