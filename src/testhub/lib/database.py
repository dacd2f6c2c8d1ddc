"""Database engine, session factory and transaction utilities."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    InterfaceError,
    OperationalError,
)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from testhub.db.base import Base
from testhub.lib.logging import get_logger

logger = get_logger(__name__)


# Errors worth flagging as connectivity problems rather than data problems
TRANSIENT_ERRORS = (
    DisconnectionError,
    InterfaceError,
    OperationalError,
)


def is_transient_error(exc: BaseException) -> bool:
    """
    Check if an exception is a transient database error.

    Args:
        exc: Exception to check

    Returns:
        True if the error looks like a connectivity problem
    """
    if isinstance(exc, TRANSIENT_ERRORS):
        return True

    if isinstance(exc, DBAPIError):
        error_str = str(exc).lower()
        transient_messages = [
            "connection",
            "timeout",
            "unavailable",
            "reset by peer",
            "broken pipe",
            "too many connections",
        ]
        return any(msg in error_str for msg in transient_messages)

    return False


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for a primary or shadow store."""
    kwargs: dict[str, object] = {"echo": echo}
    if not database_url.startswith("sqlite"):
        kwargs["pool_pre_ping"] = True
    return create_async_engine(database_url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_schema(engine: AsyncEngine) -> None:
    """
    Create every scan table that does not exist yet.

    Args:
        engine: Engine of the store to prepare
    """
    # Register all mapped tables on the metadata
    import testhub.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("db_schema_ready", url=engine.url.render_as_string(hide_password=True))


@asynccontextmanager
async def transaction(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Run a unit of work in one transaction.

    Commits when the block exits normally; rolls back and re-raises otherwise.

    Example:
        async with transaction(factory) as session:
            session.add(entity)
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except BaseException as e:
            await session.rollback()
            if isinstance(e, Exception) and is_transient_error(e):
                logger.warning("db_transaction_transient_error", error=str(e))
            raise


async def check_connection_health(session_factory: async_sessionmaker[AsyncSession]) -> bool:
    """
    Check database connection health.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("db_health_check_failed", error=str(e))
        return False


__all__ = [
    "TRANSIENT_ERRORS",
    "is_transient_error",
    "create_engine",
    "create_session_factory",
    "init_schema",
    "transaction",
    "check_connection_health",
]
