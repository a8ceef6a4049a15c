"""Database configuration and session management for the shortening service.

This module provides SQLAlchemy async engine setup, session management,
and database lifecycle operations using PostgreSQL as the backend.

Flow Diagram — Database Operations
=================================
::
    ┌─────────────┐
    │  Storage    │
    │  call       │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Open async   │
    │ session     │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Execute +    │
    │ commit      │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Auto-close   │
    │ (async with) │
    └─────────────┘

How to Use
===========
**Step 1 — Initialize on startup**::
    await init_db()  # Creates tables

**Step 2 — Hand the session factory to the store**::
    storage = SQLStorage(get_sessionmaker())

**Step 3 — Cleanup on shutdown**::
    await close_db()

Key Behaviours
===============
- The engine is created lazily so importing this module never connects.
- Each storage call opens its own short session; counter workers and
  request handlers never share one.
- Tables are created automatically on application startup.
- Engine is properly disposed on application shutdown.

Classes:
    Base:  SQLAlchemy declarative base for all models.

Functions:
    get_engine():  Lazily build the async engine.
    get_sessionmaker():  Session factory bound to the engine.
    init_db():  Creates all tables on startup.
    close_db():  Disposes the engine on shutdown.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from shortener.config import get_settings

__all__ = ["Base", "get_engine", "get_sessionmaker", "init_db", "close_db"]

settings = get_settings()

engine: AsyncEngine | None = None
async_session: async_sessionmaker[AsyncSession] | None = None


class Base(DeclarativeBase):
    pass


def get_engine() -> AsyncEngine:
    global engine
    if engine is None:
        engine = create_async_engine(
            settings.DATABASE_URL,
            echo=(settings.APP_ENV == "development"),
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=10,
            pool_pre_ping=True,
        )
    return engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    global async_session
    if async_session is None:
        async_session = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return async_session


async def init_db() -> None:
    # Registers the ``urls`` table on Base.metadata
    import shortener.models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    global engine, async_session
    if engine is not None:
        await engine.dispose()
    engine = None
    async_session = None
