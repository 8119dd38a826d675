"""Synchronous key-value backend on a SQL table (kv_entries)."""
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from sqlalchemy import Engine, delete, func, select
from sqlalchemy.orm import Session

from studio.models import KvEntry


def entry_size(key: str, value: str) -> int:
    """Serialized size of a pair in bytes (UTF-8 of key + value)."""
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


def _now_ms() -> float:
    return time.time() * 1000


@dataclass(frozen=True)
class EntryInfo:
    """Size and write order of one stored entry, without its value."""

    key: str
    size_bytes: int
    sequence: int
    written_at: float


class SqlKeyValueBackend:
    """
    Raw storage for the key-value tier. Raises on I/O errors;
    KeyValueStore is the boundary that turns failures into boolean/None results.
    """

    def __init__(self, engine: Engine, clock: Optional[Callable[[], float]] = None) -> None:
        self.engine = engine
        self.clock = clock or _now_ms
        KvEntry.__table__.create(bind=engine, checkfirst=True)

    def read(self, key: str) -> Optional[str]:
        with Session(self.engine) as session:
            return session.execute(select(KvEntry.value).where(KvEntry.key == key)).scalar_one_or_none()

    def write(self, key: str, value: str) -> None:
        """Delete + insert so the row gets a fresh id (newest write)."""
        with Session(self.engine) as session, session.begin():
            session.execute(delete(KvEntry).where(KvEntry.key == key))
            session.add(
                KvEntry(
                    key=key,
                    value=value,
                    size_bytes=entry_size(key, value),
                    written_at=self.clock(),
                )
            )

    def delete(self, key: str) -> None:
        with Session(self.engine) as session, session.begin():
            session.execute(delete(KvEntry).where(KvEntry.key == key))

    def delete_many(self, keys: List[str]) -> None:
        if not keys:
            return
        with Session(self.engine) as session, session.begin():
            session.execute(delete(KvEntry).where(KvEntry.key.in_(keys)))

    def entries(self) -> List[EntryInfo]:
        """All entries, oldest write first."""
        with Session(self.engine) as session:
            rows = session.execute(
                select(KvEntry.key, KvEntry.size_bytes, KvEntry.id, KvEntry.written_at).order_by(KvEntry.id)
            ).all()
        return [EntryInfo(key=r[0], size_bytes=r[1], sequence=r[2], written_at=r[3]) for r in rows]

    def usage(self) -> int:
        with Session(self.engine) as session:
            total = session.execute(select(func.coalesce(func.sum(KvEntry.size_bytes), 0))).scalar_one()
        return int(total)
