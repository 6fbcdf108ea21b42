from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from alertsync.config import Settings, get_settings

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _pool_options(settings: Settings) -> dict[str, int]:
    # SQLite uses a static/null pool that rejects sizing arguments.
    if settings.database_url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_recycle": settings.db_pool_recycle,
    }


def init_engine(settings: Settings | None = None) -> None:
    """Create the process-wide engine and session factory once."""

    global _engine, _session_factory

    if _engine is not None:
        return

    cfg = settings or get_settings()
    _engine = create_async_engine(
        cfg.database_url,
        echo=cfg.debug,
        pool_pre_ping=True,
        **_pool_options(cfg),
    )
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""

    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Open a session from the shared factory, initialising it on first use."""

    if _session_factory is None:
        init_engine()
    assert _session_factory is not None

    async with _session_factory() as session:
        yield session
