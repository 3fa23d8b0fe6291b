"""
Database initialization and connection management.

This module provides the ``Database`` object that owns the async engine and
session factory, creates the schema, and hands out transactional sessions.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from cartpod.common.exceptions import DatabaseError
from cartpod.common.logger import app_logger
from cartpod.database.base import metadata

# Imported for its side effect of registering the tables on ``metadata``.
from cartpod.database import models  # noqa: F401

logger = app_logger.getChild("database.init_db")


def get_engine_kwargs(database_url: str, echo: bool = False, pool_size: int = 5) -> Dict[str, Any]:
    """
    Get engine keyword arguments based on database type.
    SQLite does not accept pool sizing options.
    """
    kwargs: Dict[str, Any] = {"echo": echo}

    if database_url.startswith("postgresql"):
        kwargs.update({
            "pool_size": pool_size,
            "pool_pre_ping": True,
            "pool_recycle": 300,
        })

    return kwargs


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Async engine plus session factory.

    Every ``session()`` block is one transaction: committed when the block
    exits normally, rolled back when it raises.
    """

    def __init__(self, database_url: str, echo: bool = False, pool_size: int = 5):
        self.database_url = database_url
        self.engine: AsyncEngine = create_async_engine(
            database_url,
            **get_engine_kwargs(database_url, echo=echo, pool_size=pool_size)
        )
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        if database_url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async def create_all(self) -> None:
        """Create any missing tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        logger.info("Database schema is up to date")

    async def ping(self) -> bool:
        """Return True when the database answers a trivial query."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database ping failed: {e}")
            return False

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Open a transactional session.

        Raises:
            DatabaseError: For any SQLAlchemy failure not handled inside the block
        """
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise DatabaseError(str(e), original_exception=e) from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
        logger.info("Database engine disposed")
