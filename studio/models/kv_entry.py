"""Key-value entry model (small JSON strings: credentials, session, influencer lists)."""
from sqlalchemy import Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from studio.db import Base


class KvEntry(Base):
    """
    One key-value pair. id grows with every write (rows are re-inserted),
    so ordering by id is ordering by last write; the storage guard evicts lowest id first.
    """

    __tablename__ = "kv_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    written_at: Mapped[float] = mapped_column(Float, nullable=False)  # ms epoch
