"""SQLAlchemy models for both storage tiers."""
from studio.models.document import Document
from studio.models.kv_entry import KvEntry

__all__ = [
    "Document",
    "KvEntry",
]
