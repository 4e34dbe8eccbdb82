"""
Relational store for links, ads, categories and gateway events.

PostgreSQL (asyncpg) in production. ``database.url`` may point at any other
async SQLAlchemy URL; SQLite gets foreign keys switched on so the cascading
association tables behave the same as on PostgreSQL.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event, make_url, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from adlink.common.config import get_settings
from adlink.common.logger import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class."""

    pass


def _engine_options(url: str) -> dict[str, Any]:
    settings = get_settings()
    options: dict[str, Any] = {"echo": settings.debug}
    if make_url(url).get_backend_name() == "postgresql":
        options.update(
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
            pool_pre_ping=True,
            connect_args={"server_settings": {"application_name": settings.app_name}},
        )
    return options


class DatabaseManager:
    """
    Owns the async engine and the session factory.

    One instance per process, initialised in the application lifespan (or
    by ``scripts/init_db.py``) and disposed on shutdown.
    """

    def __init__(self) -> None:
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self._session_factory

    async def init(self, url: str | None = None) -> None:
        """Create the engine for ``url``, or for the configured database."""
        url = url or get_settings().database.async_url
        self._engine = create_async_engine(url, **_engine_options(url))

        if self._engine.dialect.name == "sqlite":
            @event.listens_for(self._engine.sync_engine, "connect")
            def enable_foreign_keys(dbapi_conn: Any, _: Any) -> None:
                cursor = dbapi_conn.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        logger.info(
            "Database initialized",
            dialect=self._engine.dialect.name,
            database=self._engine.url.database,
        )

    async def close(self) -> None:
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connection closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        One unit of work.

        Commits on clean exit and rolls back on error, so an event row and
        its counter increments land together or not at all.

        Usage:
            async with db.session() as session:
                await EventService(session).record_click(...)
        """
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """True when a trivial query round-trips."""
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False


# Global database manager instance
db = DatabaseManager()


async def init_db() -> None:
    await db.init()


async def close_db() -> None:
    await db.close()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency: one session, and one transaction, per request.

    Usage:
        @router.get("/links")
        async def list_links(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with db.session() as session:
        yield session


async def create_tables() -> None:
    """Create every table registered on ``Base.metadata``."""
    import adlink.models  # noqa: F401

    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def drop_tables() -> None:
    import adlink.models  # noqa: F401

    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("Database tables dropped")
