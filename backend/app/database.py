"""
OwnerGate Backend: Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, declarative base and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine, provides a per-request session that commits on
       success and rolls back on error.
Who:   Route handlers (through get_access_control), the health check and bootstrap.

Engine options:
    SQLite (the default) manages its own connection pool, so pool_size and
    max_overflow are only passed for server databases such as PostgreSQL.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


def build_engine_options(database_url: str) -> Dict[str, Any]:
    """Engine keyword arguments appropriate for the given URL."""
    options: Dict[str, Any] = {
        # SQL echo is only useful while developing
        "echo": settings.log_level == "DEBUG",
    }
    if database_url.startswith("sqlite"):
        # aiosqlite connections are used from the event loop thread only
        options["connect_args"] = {"check_same_thread": False}
        return options

    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
    )
    return options


def create_engine_for(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, **build_engine_options(database_url))


# ── Engine & Session Factory ─────────────────────────────────────────────
engine = create_engine_for(settings.database_url)

# expire_on_commit=False: records returned by the store stay readable after
# the request's transaction commits
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object between the models, Alembic and the
    test fixtures that create tables in an in-memory database.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Commits when the route returns normally. Any exception rolls the
    transaction back and is re-raised for the global handlers, so a denied
    or failed request never leaves a partial write behind.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_all_tables(bind: AsyncEngine = engine) -> None:
    """Create every mapped table. Used by tests and local bootstrap, not production."""
    # Models must be imported so their tables are registered on Base.metadata
    from app.models import client_profile, invoice, project, user  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close all pooled connections. Called during application shutdown."""
    await engine.dispose()
