"""
Storage guard for the key-value tier.
- enforce_limit: before every write, make room under the byte budget by evicting
  the least critical, oldest entries. Protected keys (credential table, session) are never evicted.
- cleanup: startup sweep of expired sessions, orphaned influencer lists and unreadable entries.
"""
import json
import time
from typing import Callable, Iterable, List, Optional

from studio.logging_config import get_logger
from studio.storage.keys import PROTECTED_KEYS, SESSION_KEY, USERS_STORAGE_KEY, influencer_list_owner
from studio.storage.kv_backend import EntryInfo, SqlKeyValueBackend, entry_size

logger = get_logger(__name__)

# Eviction rank: lower is evicted first.
RANK_PLAIN = 0
RANK_INFLUENCER_LIST = 1


class StorageQuotaExceeded(Exception):
    """Raised when eviction cannot free enough room for a write."""

    def __init__(self, key: str, required: int, available: int) -> None:
        self.key = key
        self.required = required
        self.available = available
        super().__init__(
            f"Storage budget exceeded writing '{key}': need {required} bytes, at most {available} can be made free."
        )


def eviction_rank(key: str) -> int:
    if influencer_list_owner(key) is not None:
        return RANK_INFLUENCER_LIST
    return RANK_PLAIN


class StorageGuard:
    """Byte budget enforcement over a SqlKeyValueBackend."""

    def __init__(
        self,
        backend: SqlKeyValueBackend,
        budget_bytes: int,
        protected_keys: Iterable[str] = PROTECTED_KEYS,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.backend = backend
        self.budget_bytes = budget_bytes
        self.protected_keys = frozenset(protected_keys)
        self.clock = clock or (lambda: time.time() * 1000)

    def usage(self) -> int:
        return self.backend.usage()

    def _eviction_candidates(self, entries: List[EntryInfo], writing_key: str) -> List[EntryInfo]:
        candidates = [e for e in entries if e.key not in self.protected_keys and e.key != writing_key]
        return sorted(candidates, key=lambda e: (eviction_rank(e.key), e.sequence))

    def enforce_limit(self, key: str, value: str) -> List[str]:
        """
        Make room for (key, value). Returns the evicted keys (usually empty).
        The eviction plan is computed first; nothing is deleted unless the write will fit.
        Raises StorageQuotaExceeded otherwise.
        """
        needed = entry_size(key, value)
        entries = self.backend.entries()
        # Overwriting a key releases its current size.
        usage = sum(e.size_bytes for e in entries if e.key != key)
        if usage + needed <= self.budget_bytes:
            return []

        to_free = usage + needed - self.budget_bytes
        plan: List[str] = []
        freed = 0
        for entry in self._eviction_candidates(entries, key):
            if freed >= to_free:
                break
            plan.append(entry.key)
            freed += entry.size_bytes

        if freed < to_free:
            available = self.budget_bytes - (usage - freed)
            logger.warning(
                "storage_guard.quota_exceeded",
                key=key,
                required=needed,
                available=available,
                budget=self.budget_bytes,
            )
            raise StorageQuotaExceeded(key, needed, max(available, 0))

        self.backend.delete_many(plan)
        logger.info("storage_guard.evicted", key=key, evicted=plan, freed_bytes=freed)
        return plan

    def _session_expired(self, raw: Optional[str]) -> bool:
        if raw is None:
            return False
        try:
            data = json.loads(raw)
            expires_at = float(data["expiresAt"])
        except (ValueError, TypeError, KeyError):
            return True
        return self.clock() >= expires_at

    def _known_users(self) -> Optional[set]:
        """Usernames in the credential table; None when the table is unreadable."""
        raw = self.backend.read(USERS_STORAGE_KEY)
        if raw is None:
            return set()
        try:
            users = json.loads(raw)
        except ValueError:
            return None
        if not isinstance(users, dict):
            return None
        return set(users)

    def cleanup(self) -> List[str]:
        """Remove expired/unreadable session, orphaned influencer lists and non-JSON entries."""
        removed: List[str] = []
        if self._session_expired(self.backend.read(SESSION_KEY)):
            removed.append(SESSION_KEY)

        users = self._known_users()
        for entry in self.backend.entries():
            if entry.key in self.protected_keys:
                continue
            owner = influencer_list_owner(entry.key)
            if owner is not None and users is not None and owner not in users:
                removed.append(entry.key)
                continue
            raw = self.backend.read(entry.key)
            if raw is None:
                continue
            try:
                json.loads(raw)
            except ValueError:
                removed.append(entry.key)

        self.backend.delete_many(removed)
        if removed:
            logger.info("storage_guard.cleanup", removed=removed)
        return removed
