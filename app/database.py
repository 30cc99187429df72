"""
RentMatch: Database engine and sessions.

One asyncpg engine per process, sized from settings, and a ``get_db``
dependency that wraps each request in a single transaction.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by users, preferences and properties."""


def async_database_url(raw_url: str) -> str:
    """Force the asyncpg driver onto a ``postgresql`` URL."""
    url = make_url(raw_url)
    if url.drivername in ("postgresql", "postgres", "postgresql+psycopg2"):
        url = url.set(drivername="postgresql+asyncpg")
    return url.render_as_string(hide_password=False)


def build_engine(settings: Settings) -> AsyncEngine:
    url = async_database_url(settings.DATABASE_URL)
    logger.info("Creating database engine for %s", make_url(url).render_as_string())
    return create_async_engine(
        url,
        echo=settings.LOG_LEVEL == "DEBUG",
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=1800,
    )


engine = build_engine(get_settings())

async_session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session; commit on success, roll back on any error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
