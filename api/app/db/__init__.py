"""Async database engines and session factories.

The DSN comes from :attr:`config.Settings.database_url`, for example::

    postgresql+asyncpg://u:p@host:5432/storefront
    sqlite+aiosqlite:///./storefront.db

Route handlers depend on :func:`get_session_factory`; tests override that
dependency with a factory bound to a temporary database.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from config import get_settings

from ..models_tenant import Base
from ..obs import add_query_logger


def get_engine(url: str, **kwargs: Any) -> AsyncEngine:
    """Create an :class:`AsyncEngine` for ``url`` with query logging attached."""

    engine = create_async_engine(url, **kwargs)
    add_query_logger(engine, "storefront")
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_models(engine: AsyncEngine) -> None:
    """Create all tables for ``engine`` if they do not exist."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@lru_cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the application-wide session factory."""

    return create_session_factory(get_engine(get_settings().database_url))


__all__ = ["create_session_factory", "get_engine", "get_session_factory", "init_models"]
