"""Async SQLAlchemy engine and sessions.

The application factory builds one :class:`DatabaseManager` from its
settings and stores it on ``app.state.db``. Request handlers obtain a
session through :func:`get_db_session` and commit explicitly.
"""

import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from dataplayground.core.config import Settings
from dataplayground.core.logging import get_logger

logger = get_logger(__name__)


def json_serializer(value: Any) -> str:
    """JSON column encoder; non-ASCII text is stored unescaped for share-email matching."""
    return json.dumps(value, ensure_ascii=False)


class Base(DeclarativeBase):
    """Declarative base shared by every ORM model."""


def _engine_options(settings: Settings) -> dict[str, Any]:
    if settings.uses_sqlite:
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_recycle": settings.db_pool_recycle,
        "pool_pre_ping": True,
    }


class DatabaseManager:
    """Owns the engine and the session factory for one application.

    The engine is created lazily on first use unless one is supplied, which
    lets tests share a single in-memory database across sessions.
    """

    def __init__(self, settings: Settings, engine: AsyncEngine | None = None) -> None:
        self.settings = settings
        self._engine = engine
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_async_engine(
                self.settings.database_url,
                echo=self.settings.db_echo,
                json_serializer=json_serializer,
                **_engine_options(self.settings),
            )
            logger.info(
                "Database engine created",
                database_url=self._engine.url.render_as_string(hide_password=True),
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._sessions is None:
            self._sessions = async_sessionmaker(
                self.engine,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._sessions

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session; pending changes are rolled back if the block raises.

        Nothing is committed here. Callers decide when a unit of work is done::

            async with db.session() as session:
                session.add(model)
                await session.commit()
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        """Run ``CREATE TABLE IF NOT EXISTS`` for every registered model.

        Only development, testing and ``init-db`` use this. Production
        schemas are owned by alembic.
        """
        from dataplayground.infrastructure.persistence import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created", tables=sorted(Base.metadata.tables))

    async def check_connection(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.error("Database unreachable", error=str(exc))
            return False
        return True

    async def disconnect(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed")


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request."""
    db: DatabaseManager = request.app.state.db
    async with db.session() as session:
        yield session


def ensure_sqlite_directory(database_url: str) -> None:
    """Create the directory holding a file-backed SQLite database, if needed."""
    url = make_url(database_url)
    if not url.drivername.startswith("sqlite") or url.database in (None, "", ":memory:"):
        return
    directory = Path(url.database).parent
    directory.mkdir(parents=True, exist_ok=True)


async def init_database(db: DatabaseManager) -> None:
    """Verify connectivity and, outside production, create missing tables.

    Raises:
        RuntimeError: The database cannot be reached.
    """
    ensure_sqlite_directory(db.settings.database_url)

    if not await db.check_connection():
        raise RuntimeError("Failed to connect to database")

    if db.settings.is_production:
        logger.info("Skipping table creation in production; run migrations")
        return
    await db.create_tables()
