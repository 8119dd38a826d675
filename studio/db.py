"""Database engines for both storage tiers (SQLAlchemy 2.0).

The document tier is async (aiosqlite locally, asyncpg for PostgreSQL); the
key-value tier is a plain sync engine because every key-value call is synchronous.
"""
from typing import Any, Dict

from sqlalchemy import Engine, create_engine
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Declarative base for all models."""

    pass


def _is_memory_sqlite(url: str) -> bool:
    if not url.startswith("sqlite"):
        return False
    path = url.split("://", 1)[1] if "://" in url else ""
    return path in ("", "/", "/:memory:") or "mode=memory" in path


def _engine_kwargs(url: str, echo: bool) -> Dict[str, Any]:
    """In-memory SQLite must share one connection or every session sees an empty database."""
    kwargs: Dict[str, Any] = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(url):
            kwargs["poolclass"] = StaticPool
    return kwargs


def create_document_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Async engine for the document tier."""
    return create_async_engine(url, future=True, **_engine_kwargs(url, echo))


def create_kv_engine(url: str, echo: bool = False) -> Engine:
    """Sync engine for the key-value tier."""
    return create_engine(url, future=True, **_engine_kwargs(url, echo))


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the document engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
