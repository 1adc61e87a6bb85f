"""Async database engine and session management.

Provides:
    - _get_engine: The SQLAlchemy async engine (lazy singleton).
    - _get_session_factory: A sessionmaker bound to the engine.
    - get_async_session: FastAPI dependency that yields a session per request.
    - init_db / close_db: Lifecycle hooks for FastAPI's lifespan.

One request is one transaction: the session commits after the route returns
and rolls back if a contract call or anything else raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from crowdfund_escrow.config import get_settings
from crowdfund_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = get_logger(__name__)

# Module-level singletons (initialized in init_db)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def build_engine(database_url: str, echo: bool = False, **pool_options: Any) -> AsyncEngine:
    """Create an async engine, sharing one connection for in-memory SQLite."""
    if database_url.startswith("sqlite") and (
        database_url.endswith(":memory:") or database_url.endswith("//")
    ):
        return create_async_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)
    return create_async_engine(database_url, echo=echo, pool_pre_ping=True, **pool_options)


def _get_engine() -> AsyncEngine:
    """Get or create the async engine (lazy singleton)."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = build_engine(
            settings.database_url,
            echo=settings.db_echo_sql,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
        )
        logger.info(
            "database.engine_created",
            dialect=_engine.dialect.name,
            pool_size=None if settings.is_sqlite else settings.db_pool_size,
        )
    return _engine


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def _get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory (lazy singleton)."""
    global _session_factory
    if _session_factory is None:
        _session_factory = make_session_factory(_get_engine())
    return _session_factory


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async database session.

    The session is automatically committed on success or rolled back on error.
    """
    factory = _get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_tables(engine: AsyncEngine) -> None:
    from crowdfund_escrow.infrastructure.database.orm_models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@retry(
    retry=retry_if_exception_type((OSError, OperationalError)),
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
)
async def _create_tables_on_startup(engine: AsyncEngine) -> None:
    """Create tables, waiting out a database that is still starting up."""
    await create_tables(engine)


async def init_db() -> None:
    """Initialize the database engine and create tables if they don't exist.

    Called during FastAPI's lifespan startup. Outside development the schema
    is expected to be managed externally.
    """
    engine = _get_engine()
    settings = get_settings()

    if settings.is_development:
        await _create_tables_on_startup(engine)
        logger.info("database.tables_created")
    else:
        logger.info("database.skipping_create_all", reason="not in development mode")


async def close_db() -> None:
    """Dispose of the database engine. Called during FastAPI's lifespan shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("database.engine_disposed")
        _engine = None
        _session_factory = None
