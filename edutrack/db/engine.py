"""SQLAlchemy engines and the declarative base.

When DATABASE_URL is configured, provides:
- async engine for PostgreSQL via asyncpg, used by the connectivity probe
  behind GET /health and GET /ready
- a synchronous engine and session factory (psycopg2) for the repositories;
  the service layer is plain synchronous code run in FastAPI's threadpool
- FastAPI lifespan hook for startup/shutdown

When DATABASE_URL is None, every engine is None and the service runs on the
in-memory repositories selected in edutrack.repos.store.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from edutrack.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


def sync_url(url: str) -> str:
    """postgresql+asyncpg://... -> postgresql://... (psycopg2 driver)."""
    return url.replace("postgresql+asyncpg", "postgresql")


if SETTINGS.database_url:
    engine = create_async_engine(
        SETTINGS.database_url,
        echo=SETTINGS.is_dev,  # log SQL in dev only
        pool_size=5,
        max_overflow=10,
    )
    sync_engine = create_engine(
        sync_url(SETTINGS.database_url),
        echo=SETTINGS.is_dev,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )
    session_factory = sessionmaker(sync_engine, expire_on_commit=False)
else:
    engine = None
    sync_engine = None
    session_factory = None


async def ping_database() -> bool:
    if engine is None:
        return False
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.warning("Database ping failed", exc_info=True)
        return False


@asynccontextmanager
async def lifespan_db():
    """Startup/shutdown hook for the database engines."""
    if engine is None:
        logger.info("No DATABASE_URL configured, using in-memory repositories")
        yield
        return

    logger.info("Database engine created: %s", engine.url)
    yield
    await engine.dispose()
    if sync_engine is not None:
        sync_engine.dispose()
    logger.info("Database engines disposed")
