"""
Database engine and session management for the storefront backend.

Uses SQLAlchemy async engine with aiosqlite for non-blocking DB operations
inside FastAPI. Tables are auto-created on server startup via init_db().

The orders table is the single arbiter for concurrent confirmations, so
SQLite connections wait on a locked database instead of failing at once.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from config import settings

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_SECONDS = 10


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


def async_database_url(url: str) -> str:
    """sqlite:///... → sqlite+aiosqlite:///...; other URLs pass through."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite+aiosqlite"):
        return {"connect_args": {"timeout": SQLITE_BUSY_TIMEOUT_SECONDS}}
    return {"pool_pre_ping": True}


# ── Engine ──────────────────────────────────────────────────────────

_async_url = async_database_url(settings.database_url)

engine = create_async_engine(_async_url, future=True, **_engine_kwargs(_async_url))

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# ── Helpers ─────────────────────────────────────────────────────────

async def init_db() -> None:
    """Create all tables. Called once on server startup."""
    # Import models so Base.metadata knows about them
    import db_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables created (or already exist)")


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields an async session."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()
