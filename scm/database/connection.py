"""
Database Connection Management

Async database engine and session management with SQLAlchemy 2.0.
Implements session scoping, the atomic unit of work used by every order
mutation, health checks, and graceful shutdown.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool
from sqlalchemy import event, text
from prometheus_client import Counter

from scm.config import get_settings
from scm.exceptions import IntegrityConflictError, SCMError, TransactionFailureError

logger = structlog.get_logger(__name__)
settings = get_settings()

UNITS_OF_WORK = Counter(
    "scm_units_of_work_total",
    "Order and catalog mutations by outcome",
    ["operation", "outcome"],
)

# Global engine and session factory
_engine: Optional[AsyncEngine] = None
_async_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Build the session factory used by the application and the test suite.

    ``expire_on_commit`` is disabled so ORM objects returned by a committed
    unit of work stay readable without lazy IO.
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on foreign key enforcement for every new SQLite connection."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async def init_database(create_tables: bool = False) -> AsyncEngine:
    """
    Initialize the database engine.

    Args:
        create_tables: Create missing tables (development and seeding only)

    Returns:
        AsyncEngine: The initialized database engine
    """
    global _engine, _async_session_factory

    if _engine is not None:
        logger.warning("Database already initialized")
        return _engine

    engine_config = {
        "echo": settings.database.echo,
        "pool_pre_ping": True,
    }

    # asyncpg manages its own connections; SQLite URLs keep the default pool
    if settings.database.async_url.startswith("postgresql"):
        engine_config["poolclass"] = NullPool

    _engine = create_async_engine(
        settings.database.async_url,
        **engine_config,
    )
    enable_sqlite_foreign_keys(_engine)
    _async_session_factory = create_session_factory(_engine)

    try:
        async with _engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if create_tables:
                from scm.database.models import Base
                await conn.run_sync(Base.metadata.create_all)
        logger.info(
            "Database connection established",
            host=settings.database.host,
            database=settings.database.db,
        )
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    return _engine


async def close_database() -> None:
    """
    Close the database engine.

    Gracefully closes all pooled connections.
    """
    global _engine, _async_session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_factory = None
        logger.info("Database connection pool closed")


def get_engine() -> AsyncEngine:
    """
    Get the database engine.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


@asynccontextmanager
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session.

    Context manager that provides a database session and handles
    commit/rollback/close automatically.

    Example:
        async with get_db() as db:
            result = await db.execute(query)
    """
    if _async_session_factory is None:
        logger.error("Database not initialized when get_db() called")
        raise RuntimeError("Database not initialized. Call init_database() first.")

    session = _async_session_factory()
    try:
        yield session
        await session.commit()
    except Exception as e:
        logger.error("Database session error, rolling back", error=str(e), error_type=type(e).__name__)
        await session.rollback()
        raise
    finally:
        await session.close()


async def get_db_dependency() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions.

    Example:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db_dependency)):
            ...
    """
    async with get_db() as session:
        yield session


@asynccontextmanager
async def unit_of_work(session: AsyncSession, operation: str) -> AsyncGenerator[AsyncSession, None]:
    """
    Run one order mutation as a single all-or-nothing transaction.

    Everything staged on ``session`` inside the block is committed together.
    Domain errors roll the session back and propagate unchanged. Constraint
    violations surface as a non-retryable ``IntegrityConflictError``; any
    other storage error surfaces as a retryable ``TransactionFailureError``.

    Example:
        async with unit_of_work(session, "update_order_status"):
            product.quantity += 5
            order.status = OrderStatus.COMPLETED
    """
    try:
        yield session
        await session.flush()
        await session.commit()
        UNITS_OF_WORK.labels(operation=operation, outcome="committed").inc()
    except SCMError:
        await session.rollback()
        UNITS_OF_WORK.labels(operation=operation, outcome="rejected").inc()
        raise
    except IntegrityError as e:
        await session.rollback()
        UNITS_OF_WORK.labels(operation=operation, outcome="conflict").inc()
        reason = str(e.orig).splitlines()[0] if e.orig is not None else type(e).__name__
        logger.warning("Unit of work violated a constraint", operation=operation, reason=reason)
        raise IntegrityConflictError(operation, reason=reason) from e
    except SQLAlchemyError as e:
        await session.rollback()
        UNITS_OF_WORK.labels(operation=operation, outcome="failed").inc()
        logger.error(
            "Unit of work rolled back",
            operation=operation,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise TransactionFailureError(operation, reason=type(e).__name__) from e
    except BaseException:
        await session.rollback()
        UNITS_OF_WORK.labels(operation=operation, outcome="aborted").inc()
        raise


async def check_database_health() -> dict:
    """
    Check database health status.

    Returns:
        dict: Health status with latency information
    """
    import time

    try:
        start = time.perf_counter()
        async with get_db() as db:
            await db.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }
