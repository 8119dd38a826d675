"""Influencer (persona profile / workspace namespace)."""
from pydantic import Field

from studio.schemas.common import DocumentModel, new_id, now_ms


class Influencer(DocumentModel):
    """One persona profile owned by a user. Identity is id."""

    id: str = Field(default_factory=new_id)
    name: str
    handle: str = ""
    created_at: int = Field(default_factory=now_ms)
