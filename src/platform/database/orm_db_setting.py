"""
SQLAlchemy async engine and session management

- AsyncEngineManager: event-loop-aware engine/session maker cache
- Base: declarative base for all ORM models
- create_db_and_tables: idempotent schema creation at startup
"""

import asyncio
from typing import Any, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


class AsyncEngineManager:
    """
    Keeps one engine per running event loop.

    Engines hold connections bound to the loop that created them, so a new
    loop (test runner, anyio portal) gets a fresh engine instead of the
    "Future attached to a different loop" error.
    """

    def __init__(self, *, url: Optional[str] = None) -> None:
        self._url = url
        self._engine: Optional[AsyncEngine] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def url(self) -> str:
        return self._url or settings.DATABASE_URL_ASYNC

    def get_engine(self) -> AsyncEngine:
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            if self._engine is None:
                self._engine = self._create_engine()
                self._session_maker = None
            return self._engine

        if self._loop is not current_loop:
            if self._engine is not None:
                Logger.base.warning('🔄 [DB] Event loop changed, dropping old engine')
            self._session_maker = None
            Logger.base.info(f'🔗 [DB] Creating engine for event loop {id(current_loop)}')
            self._engine = self._create_engine()
            self._loop = current_loop

        assert self._engine is not None
        return self._engine

    def get_session_maker(self) -> async_sessionmaker[AsyncSession]:
        engine = self.get_engine()
        if self._session_maker is None:
            self._session_maker = async_sessionmaker(
                engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_maker

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_maker = None
        self._loop = None

    def _create_engine(self) -> AsyncEngine:
        return create_async_engine(self.url, echo=False, **self._pool_options())

    def _pool_options(self) -> dict[str, Any]:
        # SQLite has no server-side pool to tune
        if make_url(self.url).get_backend_name() == 'sqlite':
            return {}
        return {
            'pool_size': settings.DB_POOL_SIZE,
            'max_overflow': settings.DB_POOL_MAX_OVERFLOW,
            'pool_timeout': settings.DB_POOL_TIMEOUT,
            'pool_recycle': settings.DB_POOL_RECYCLE,
            'pool_pre_ping': settings.DB_POOL_PRE_PING,
        }


_engine_manager = AsyncEngineManager()


def get_engine() -> AsyncEngine:
    return _engine_manager.get_engine()


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    return _engine_manager.get_session_maker()


async def dispose_engine() -> None:
    await _engine_manager.dispose()


class Base(DeclarativeBase):
    pass


async def create_db_and_tables(engine: Optional[AsyncEngine] = None) -> None:
    """Create database tables if they don't exist"""
    # Models register themselves on Base.metadata at import time
    import src.service.booking.driven_adapter.model  # noqa: F401

    current_engine = engine or get_engine()
    async with current_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
