"""Database configuration and session management for the link shortener.

This module provides SQLAlchemy async engine setup, session management,
and database lifecycle operations using PostgreSQL as the backend.

Flow Diagram: Database Operations
=================================
::
    ┌──────────────┐
    │ HTTP request │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ get_db()     │
    │ dependency   │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ async_session│
    │ () opened    │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ yielded to   │
    │ handler      │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ closed in    │
    │ finally      │
    └──────────────┘

How to Use
===========
**Step 1: Initialize on startup**::
    await init_db()  # Creates tables

**Step 2: Use in FastAPI endpoints**::
    @app.get("/links")
    async def get_links(db: AsyncSession = Depends(get_db)):
        result = await db.execute(select(Link))
        return result.scalars().all()

**Step 3: Cleanup on shutdown**::
    await close_db()

Key Behaviours
===============
- Async sessions are automatically closed after each request.
- Connection pooling is configured for PostgreSQL; SQLite URLs skip the
  pool sizing arguments its pool classes do not accept.
- Tables are created automatically on application startup.
- Engine is properly disposed on application shutdown.

Classes:
    Base:  SQLAlchemy declarative base for all models.

Functions:
    get_db():  FastAPI dependency for database sessions.
    init_db():  Creates all tables on startup.
    close_db():  Disposes the engine on shutdown.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from linkshortener.config import Settings, get_settings

__all__ = ["Base", "get_db", "init_db", "close_db"]

settings = get_settings()


def _engine_options(settings: Settings) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.APP_ENV == "development"}
    if not settings.DATABASE_URL.startswith("sqlite"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
    return options


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings))

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    # Import for side effects: registers the tables on Base.metadata.
    from linkshortener import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
