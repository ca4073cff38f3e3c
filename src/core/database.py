"""Database configuration and session management."""

from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.core.config import Settings, get_settings
from src.core.exceptions import StorageError, ValidationError


def create_engine(settings: Settings) -> AsyncEngine:
    """Create async SQLAlchemy engine."""
    return create_async_engine(
        str(settings.database_url),
        echo=settings.app_debug,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create async session factory."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Global engine and session factory (initialized on startup)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_database(settings: Settings | None = None) -> None:
    """Initialize database engine and session factory."""
    global _engine, _session_factory
    if settings is None:
        settings = get_settings()
    _engine = create_engine(settings)
    _session_factory = create_session_factory(_engine)


def get_engine() -> AsyncEngine:
    """Get the database engine."""
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory."""
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _session_factory


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that provides a database session.

    Commits when the request handler returns. Driver and connectivity
    failures surface as StorageError; application errors pass through.
    """
    session_factory = get_session_factory()
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise StorageError() from e
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """Session for code running outside a request (workers, CLI)."""
    session_factory = get_session_factory()
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# Type alias for dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def close_database() -> None:
    """Close database connections."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None


def unique_violation_error(
    exc: IntegrityError,
    constraint_fields: Mapping[str, str],
) -> ValidationError:
    """Map a unique constraint violation onto the field it concerns.

    Args:
        exc: The IntegrityError raised by the driver
        constraint_fields: Constraint name -> field name

    Returns:
        ValidationError for the matching field, or for "base" if unknown
    """
    message = str(exc.orig)
    for constraint, field in constraint_fields.items():
        if constraint in message:
            return ValidationError.single(field, "has already been taken")
    return ValidationError.single("base", "conflicts with an existing record")


@asynccontextmanager
async def unique_violation_guard(
    session: AsyncSession,
    constraint_fields: Mapping[str, str],
) -> AsyncGenerator[None, None]:
    """Run writes in a savepoint and report unique violations as ValidationError.

    The savepoint keeps the surrounding transaction usable after a conflict.
    """
    try:
        async with session.begin_nested():
            yield
    except IntegrityError as e:
        raise unique_violation_error(e, constraint_fields) from e
