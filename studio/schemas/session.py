"""Session record kept in the key-value tier."""
from studio.schemas.common import DocumentModel


class SessionRecord(DocumentModel):
    """Exactly one active session is stored at a time. expires_at is ms epoch."""

    token: str
    username: str
    expires_at: int

    def is_valid(self, now: int) -> bool:
        return now < self.expires_at
