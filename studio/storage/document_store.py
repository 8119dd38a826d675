"""
Document store adapter (async): load/save/delete JSON documents by namespaced key.
- fetch: raises DocumentStoreError when the read fails, so each caller sees its own failure.
- load: never raises; failures are logged and read as "no saved data".
- save: one row per key (upsert), so concurrent saves of different categories never interfere.
- delete(prefix): remove a whole influencer namespace.
"""
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from studio.db import create_document_engine, make_session_factory
from studio.logging_config import get_logger
from studio.models import Document

logger = get_logger(__name__)


class DocumentStoreError(Exception):
    """Raised when a document cannot be read, written or deleted."""


class DocumentStore:
    """Larger-capacity async store for per-influencer documents."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], engine: Optional[AsyncEngine] = None) -> None:
        self.session_factory = session_factory
        self.engine = engine

    async def fetch(self, key: str) -> Optional[Any]:
        """Saved value or None when missing. Raises DocumentStoreError when the read itself fails."""
        try:
            async with self.session_factory() as session:
                r = await session.execute(select(Document.value).where(Document.key == key))
                return r.scalar_one_or_none()
        except (SQLAlchemyError, ValueError) as e:
            logger.warning("document_store.load_failed", key=key, error=str(e))
            raise DocumentStoreError(f"Failed to load document '{key}': {e}") from e

    async def load(self, key: str) -> Optional[Any]:
        """Saved value or None (missing, unreadable or failed). Never raises."""
        try:
            return await self.fetch(key)
        except DocumentStoreError:
            return None

    def _upsert(self, session: AsyncSession, key: str, value: Any):
        now = datetime.now(timezone.utc)
        dialect = session.bind.dialect.name
        if dialect == "postgresql":
            stmt = pg_insert(Document).values(key=key, value=value, updated_at=now)
        elif dialect == "sqlite":
            stmt = sqlite_insert(Document).values(key=key, value=value, updated_at=now)
        else:
            return None
        return stmt.on_conflict_do_update(
            index_elements=[Document.key],
            set_={"value": stmt.excluded.value, "updated_at": stmt.excluded.updated_at},
        )

    async def save(self, key: str, value: Any) -> None:
        """Replace the document at key. Raises DocumentStoreError on failure."""
        try:
            async with self.session_factory() as session:
                stmt = self._upsert(session, key, value)
                if stmt is not None:
                    await session.execute(stmt)
                else:
                    await session.merge(Document(key=key, value=value, updated_at=datetime.now(timezone.utc)))
                await session.commit()
        except (SQLAlchemyError, TypeError, ValueError) as e:
            logger.warning("document_store.save_failed", key=key, error=str(e))
            raise DocumentStoreError(f"Failed to save document '{key}': {e}") from e

    async def delete(self, prefix: str) -> int:
        """Delete every document whose key starts with prefix. Returns rows removed."""
        try:
            async with self.session_factory() as session:
                r = await session.execute(delete(Document).where(Document.key.startswith(prefix, autoescape=True)))
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning("document_store.delete_failed", prefix=prefix, error=str(e))
            raise DocumentStoreError(f"Failed to delete documents under '{prefix}': {e}") from e
        count = r.rowcount or 0
        logger.info("document_store.deleted", prefix=prefix, count=count)
        return count

    async def keys(self, prefix: str = "") -> List[str]:
        async with self.session_factory() as session:
            q = select(Document.key).order_by(Document.key)
            if prefix:
                q = q.where(Document.key.startswith(prefix, autoescape=True))
            r = await session.execute(q)
            return list(r.scalars().all())

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


async def create_document_store(url: str, echo: bool = False) -> DocumentStore:
    """Build the engine, create the documents table if needed and return the store."""
    engine = create_document_engine(url, echo=echo)
    async with engine.begin() as conn:
        await conn.run_sync(Document.__table__.create, checkfirst=True)
    return DocumentStore(make_session_factory(engine), engine=engine)
