"""
FlightLog Backend: Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, FastAPI dependency and the
       startup readiness probe.
How:   Creates an async engine with connection pooling, provides a session
       dependency that commits on success and rolls back on error.
Who:   The session dependency is injected into route handlers; the session
       factory itself is handed to the place repository at startup.
When:  Engine is created at module import; sessions are created per unit of work.

Connection Pooling (PostgreSQL):
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:     Validates connections before use
    pool_recycle=3600: Recycles connections every hour

    SQLite URLs (used by the test suite) skip the pool arguments; the SQLite
    dialects pick their own pool class.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    stop_after_attempt,
    wait_exponential,
)

from flightlog.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> AsyncEngine:
    """Create an async engine, applying pool sizing only where the dialect supports it."""
    options = {"echo": settings.log_level == "DEBUG"}
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(database_url, **options)


# ── Engine Configuration ──────────────────────────────────────────────────
engine = build_engine(settings.database_url)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: rows stay readable after commit, which the
# repository relies on when converting inserted rows to response schemas.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class so they register with the shared
    metadata that Alembic reads for migrations.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handler
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/airports")
        async def list_airports(db: AsyncSession = Depends(get_db_session)):
            ...
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


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def ping_database() -> None:
    """Run SELECT 1 on a pooled connection. Raises on failure."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def wait_for_database() -> bool:
    """
    What:  Probes the database at startup, retrying with exponential backoff.
    When:  Called from the lifespan handler before the app starts serving.
    How:   tenacity AsyncRetrying around ping_database(); each failed attempt is
           logged at WARNING before sleeping.

    Returns:
        True once a probe succeeds, False if every attempt failed. A failure is
        not fatal: the app still starts and /health reports the outage.
    """
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(settings.db_connect_attempts),
            wait=wait_exponential(multiplier=1, max=settings.db_connect_max_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        ):
            with attempt:
                await ping_database()
    except RetryError as e:
        logger.error(
            "Database unreachable after %d attempts: %s",
            settings.db_connect_attempts,
            e.last_attempt.exception() if e.last_attempt else "unknown error",
        )
        return False
    return True


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
