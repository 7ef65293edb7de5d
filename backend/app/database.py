"""
Userbase Backend - Database Session Management
===============================================

What:  Async SQLAlchemy engine handle, declarative base, and the per-request
       session dependency.
Why:   Centralizes all database connection logic in one place.
How:   `Database` owns one async engine (and its connection pool) plus a
       session factory. The app factory constructs it and stores it on
       `app.state.database`; routes reach it through `get_db_session`.
Who:   The app factory and lifespan (open/close), repositories (via sessions).
When:  Engine is created with the app; sessions are created per request.

Lifecycle:
    create_app()  → Database(url)        (no connection opened yet)
    lifespan      → ping() / create_all()  (fail fast if unreachable)
    shutdown      → dispose()            (close every pooled connection)

    Passing the handle down explicitly (instead of a module-level engine)
    lets tests build an app against a throwaway SQLite file.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional, Union

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models; owns the shared metadata."""
    pass


class Database:
    """
    Process-wide store handle: one engine, one session factory.

    Pool sizing only applies to server databases; SQLite (used in tests and
    small deployments) gets SQLAlchemy's default pool for its dialect.
    """

    def __init__(
        self,
        url: Union[str, URL],
        echo: bool = False,
        pool_size: int = 10,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
    ):
        self.url = make_url(url)
        engine_kwargs: Dict[str, Any] = {"echo": echo}
        if self.url.get_backend_name() != "sqlite":
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=pool_pre_ping,
                pool_recycle=3600,
            )
        self.engine: AsyncEngine = create_async_engine(self.url, **engine_kwargs)

        # expire_on_commit=False: rows stay readable after the request commits
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.sqlalchemy_url,
            echo=settings.database_logging,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
        )

    async def ping(self) -> None:
        """Runs SELECT 1; raises whatever the driver raises when unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_all(self) -> None:
        """Creates any missing tables registered on Base.metadata."""
        # Importing the models registers them with Base.metadata
        from app.models import user  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Closes all pooled connections."""
        await self.engine.dispose()
        logger.info("Database connections closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Yields one session and settles its transaction.

        On success the transaction is committed; on any exception it is
        rolled back and the exception re-raised for the global handlers.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the handle the app was built with."""
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Application was created without a database handle")
    return database


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Example usage in a route:
        @router.get("/things")
        async def list_things(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with get_database(request).session() as session:
        yield session
