"""Async SQLAlchemy engine and session lifecycle.

Provides:
- Base: Declarative base for all CRM tables
- get_engine(): Lazily created async engine singleton
- get_session(): Async generator yielding an AsyncSession (used as a
  repository session_factory)
- init_db() / close_db(): Startup and shutdown hooks for the app lifespan
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.crm.config import get_settings

logger = structlog.get_logger(__name__)

# ── Module-level engine (lazy init) ────────────────────────────────────────

_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get or create the async engine singleton."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.DATABASE_URL,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
            echo=False,
        )
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get or create the session maker bound to the engine singleton."""
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_maker


# ── Declarative Base ────────────────────────────────────────────────────────


class Base(DeclarativeBase):
    """Base class for CRM models (meetings, contacts, leads, users)."""


# ── Session Factory ─────────────────────────────────────────────────────────


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an AsyncSession, closed when the consumer finishes iterating."""
    async with get_session_maker()() as session:
        yield session


# ── Database Initialization ─────────────────────────────────────────────────


async def init_db(create_tables: bool = False) -> None:
    """Verify connectivity and optionally create all tables.

    Table creation is meant for local development only; deployed
    environments run Alembic migrations.
    """
    # Import models so their tables register on Base.metadata
    import src.crm.meetings.models  # noqa: F401
    import src.crm.models.people  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        if create_tables:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("database.tables_created")


async def close_db() -> None:
    """Dispose of the engine and close all connections."""
    global _engine, _session_maker
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_maker = None
