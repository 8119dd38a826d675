"""Document model: one JSON document per namespaced key."""
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from studio.db import Base


class Document(Base):
    """
    A persisted document (persona, plans, posts, brands, strategies of one influencer).
    key: data_<influencer_id>_<category>; each key is an independent row.
    """

    __tablename__ = "documents"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
