"""Async SQLAlchemy engine and session factory.

Transaction ownership: application services commit (or roll back) the request session
after their writes; repositories only execute statements on the session they are given.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models across modules."""

    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    async with async_session_factory() as session:
        yield session


@asynccontextmanager
async def standalone_transaction() -> AsyncGenerator[AsyncSession, None]:
    """Session + transaction independent of the request session.

    Used for side-channel writes (audit, rate limit counters) whose failure must
    not roll back, or be rolled back by, the request's own transaction.
    """
    async with async_session_factory() as session, session.begin():
        yield session
