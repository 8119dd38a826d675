"""
Session / auth manager over the key-value tier.
- Credential table: {username: sha256 hex}. A legacy plaintext value is accepted once and migrated to the digest.
- Session: one record {token, username, expiresAt}, 24h from issuance, not renewable without login.
- Auth failures raise AuthError subclasses and leave the state unchanged.
"""
import hashlib
import hmac
import time
import uuid
from enum import Enum
from typing import Callable, Dict, Optional

from pydantic import ValidationError

from studio.logging_config import get_logger
from studio.schemas.session import SessionRecord
from studio.storage.keys import SESSION_KEY, USERS_STORAGE_KEY
from studio.storage.kv_store import KeyValueStore

logger = get_logger(__name__)

SESSION_TTL_MS = 24 * 60 * 60 * 1000


class SessionState(str, Enum):
    LOGGED_OUT = "logged_out"
    LOGGED_IN = "logged_in"


class AuthError(ValueError):
    """User-facing authentication failure. code is stable, str(e) is the message to show."""

    code = "auth_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class InvalidCredentials(AuthError):
    code = "invalid_credentials"

    def __init__(self) -> None:
        super().__init__("Invalid username or password.")


class UsernameTaken(AuthError):
    code = "username_taken"

    def __init__(self) -> None:
        super().__init__("Username exists.")


def hash_password(password: str) -> str:
    """One-way SHA-256 digest as lowercase hex."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionManager:
    """LoggedOut <-> LoggedIn state machine with the key-value store injected."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Optional[Callable[[], int]] = None,
        ttl_ms: int = SESSION_TTL_MS,
    ) -> None:
        self.store = store
        self.clock = clock or _now_ms
        self.ttl_ms = ttl_ms
        self.session: Optional[SessionRecord] = None

    @property
    def state(self) -> SessionState:
        return SessionState.LOGGED_IN if self.session is not None else SessionState.LOGGED_OUT

    @property
    def current_user(self) -> Optional[str]:
        return self.session.username if self.session is not None else None

    @property
    def warning(self) -> Optional[str]:
        return self.store.warning

    def _users(self) -> Dict[str, str]:
        users = self.store.get_json(USERS_STORAGE_KEY, {})
        if not isinstance(users, dict):
            logger.warning("session.users_table_malformed")
            return {}
        return users

    def _save_users(self, users: Dict[str, str]) -> bool:
        return self.store.set_json(USERS_STORAGE_KEY, users)

    def credential(self, username: str) -> Optional[str]:
        """Stored digest (or legacy raw value) for username."""
        return self._users().get(username)

    def restore(self) -> Optional[str]:
        """Accept the stored session only if now < expiresAt; otherwise clear it. Returns the user."""
        data = self.store.get_json(SESSION_KEY)
        if data is None:
            self.session = None
            return None
        try:
            record = SessionRecord.model_validate(data)
        except ValidationError:
            logger.warning("session.malformed_record")
            self.store.remove(SESSION_KEY)
            self.session = None
            return None
        if not record.is_valid(self.clock()):
            logger.info("session.expired", username=record.username)
            self.store.remove(SESSION_KEY)
            self.session = None
            return None
        self.session = record
        return record.username

    def is_session_valid(self) -> bool:
        return self.session is not None and self.session.is_valid(self.clock())

    def _create_session(self, username: str) -> SessionRecord:
        record = SessionRecord(
            token=str(uuid.uuid4()),
            username=username,
            expires_at=self.clock() + self.ttl_ms,
        )
        if not self.store.set_json(SESSION_KEY, record.to_document()):
            logger.warning("session.persist_failed", username=username)
        self.session = record
        logger.info("session.created", username=username)
        return record

    def login(self, username: str, password: str) -> SessionRecord:
        users = self._users()
        stored = users.get(username)
        if not isinstance(stored, str):
            raise InvalidCredentials()
        digest = hash_password(password)
        if hmac.compare_digest(stored.encode("utf-8"), digest.encode("utf-8")):
            return self._create_session(username)
        # Legacy accounts stored the raw password; accept once and migrate.
        if hmac.compare_digest(stored.encode("utf-8"), password.encode("utf-8")):
            users[username] = digest
            if self._save_users(users):
                logger.info("session.legacy_password_migrated", username=username)
            return self._create_session(username)
        logger.info("session.login_failed", username=username)
        raise InvalidCredentials()

    def signup(self, username: str, password: str) -> SessionRecord:
        users = self._users()
        if username in users:
            raise UsernameTaken()
        users[username] = hash_password(password)
        self._save_users(users)
        return self._create_session(username)

    def logout(self) -> None:
        self.session = None
        self.store.remove(SESSION_KEY)

    def update_password(self, new_password: str) -> bool:
        """Rehash for the current user; no-op (False) when logged out."""
        if self.session is None:
            return False
        users = self._users()
        users[self.session.username] = hash_password(new_password)
        return self._save_users(users)

    def delete_account(self) -> Optional[str]:
        """Remove the credential and end the session. Returns the removed username (None if logged out)."""
        if self.session is None:
            return None
        username = self.session.username
        users = self._users()
        users.pop(username, None)
        self._save_users(users)
        self.logout()
        logger.info("session.account_deleted", username=username)
        return username
