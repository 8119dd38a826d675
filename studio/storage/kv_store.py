"""
Key-value store adapter: get/set/remove over the guarded backend.
Never raises: failures are logged and reported as None/False, with a dismissible warning.
"""
import json
from typing import Any, Optional

from studio.logging_config import get_logger
from studio.storage.guard import StorageGuard, StorageQuotaExceeded
from studio.storage.kv_backend import SqlKeyValueBackend

logger = get_logger(__name__)

QUOTA_WARNING = "Local storage is full. Some data could not be saved."
WRITE_WARNING = "Could not write to local storage."


class KeyValueStore:
    """Synchronous small-blob store (session, credential table, influencer lists)."""

    def __init__(self, backend: SqlKeyValueBackend, guard: StorageGuard) -> None:
        self.backend = backend
        self.guard = guard
        self.warning: Optional[str] = None

    def get(self, key: str) -> Optional[str]:
        try:
            return self.backend.read(key)
        except Exception as e:
            logger.warning("kv_store.get_error", key=key, error=str(e))
            return None

    def set(self, key: str, value: str) -> bool:
        """Guard first, then write. Returns False if the write was rejected or failed."""
        try:
            self.guard.enforce_limit(key, value)
            self.backend.write(key, value)
            return True
        except StorageQuotaExceeded as e:
            self.warning = QUOTA_WARNING
            logger.warning("kv_store.set_rejected", key=key, error=str(e))
            return False
        except Exception as e:
            self.warning = WRITE_WARNING
            logger.warning("kv_store.set_error", key=key, error=str(e))
            return False

    def remove(self, key: str) -> None:
        try:
            self.backend.delete(key)
        except Exception as e:
            logger.warning("kv_store.remove_error", key=key, error=str(e))

    def get_json(self, key: str, default: Any = None) -> Any:
        """Decoded JSON value; malformed or missing entries yield default."""
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("kv_store.malformed_json", key=key)
            return default

    def set_json(self, key: str, value: Any) -> bool:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            self.warning = WRITE_WARNING
            logger.warning("kv_store.serialize_error", key=key, error=str(e))
            return False
        return self.set(key, raw)

    def dismiss_warning(self) -> None:
        self.warning = None
