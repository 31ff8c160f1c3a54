"""
Database configuration and session management.

Uses SQLModel for ORM with async support.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from .config import settings
from .errors import ConflictError, UnexpectedError

logger = logging.getLogger(__name__)


def to_async_url(database_url: str) -> str:
    """
    Convert a plain database URL to its async driver form.

    SQLite: sqlite:/// -> sqlite+aiosqlite:///
    PostgreSQL: postgresql:// -> postgresql+asyncpg://
    """
    if database_url.startswith("sqlite:///"):
        return database_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


# Create async engine
engine = create_async_engine(
    to_async_url(settings.database_url),
    echo=settings.debug,
    future=True,
)

# Create async session factory
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """
    Initialize the database by creating all tables.

    Should be called on application startup.
    """
    # Register table metadata before create_all
    from qualinex import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Yields:
        AsyncSession: Database session for the request.

    Example:
        @router.get("/warranties")
        async def list_warranties(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def store_errors(
    session: AsyncSession,
    action: str,
    conflict_message: Optional[str] = None,
) -> AsyncGenerator[None, None]:
    """
    Map store failures raised inside the block to caller-safe errors.

    The session is rolled back first. Integrity violations become
    ConflictError, anything else from the driver becomes UnexpectedError.

    Example:
        async with store_errors(session, "create warranty"):
            await session.commit()
    """
    try:
        yield
    except IntegrityError:
        await session.rollback()
        logger.warning("Integrity violation while trying to %s", action, exc_info=True)
        raise ConflictError(conflict_message or f"Could not {action}: conflicting data")
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Store failure while trying to %s", action)
        raise UnexpectedError()
