"""
StudioApp: wires the client tier together the way the app root does on start.
1. Build both storage tiers, run the storage guard cleanup.
2. Restore the session (expired sessions are cleared).
3. Hand out the influencer directory of the logged-in user and loaded workspaces.
"""
from typing import List, Optional

from studio.config import Settings, get_settings
from studio.db import create_kv_engine
from studio.logging_config import get_logger
from studio.services.influencer_service import InfluencerDirectory
from studio.services.session_service import SessionManager
from studio.services.workspace_service import Workspace
from studio.storage.document_store import DocumentStore, create_document_store
from studio.storage.guard import StorageGuard
from studio.storage.kv_backend import SqlKeyValueBackend
from studio.storage.kv_store import KeyValueStore

logger = get_logger(__name__)


class NotLoggedIn(ValueError):
    def __init__(self) -> None:
        super().__init__("not_logged_in")


class StudioApp:
    """Session manager + influencer directory + workspaces over one pair of stores."""

    def __init__(self, kv: KeyValueStore, guard: StorageGuard, documents: DocumentStore, sessions: SessionManager) -> None:
        self.kv = kv
        self.guard = guard
        self.documents = documents
        self.sessions = sessions
        self._directory: Optional[InfluencerDirectory] = None

    @classmethod
    async def open(cls, settings: Optional[Settings] = None) -> "StudioApp":
        settings = settings or get_settings()
        backend = SqlKeyValueBackend(create_kv_engine(settings.kv_database_url))
        guard = StorageGuard(backend, settings.kv_budget_bytes)
        kv = KeyValueStore(backend, guard)
        documents = await create_document_store(settings.document_database_url)
        sessions = SessionManager(kv, ttl_ms=int(settings.session_ttl_hours * 60 * 60 * 1000))
        app = cls(kv, guard, documents, sessions)
        app.start()
        return app

    def start(self) -> Optional[str]:
        """Storage cleanup, then session restore. Returns the restored user, if any."""
        try:
            self.guard.cleanup()
        except Exception as e:
            logger.warning("studio.cleanup_failed", error=str(e))
        user = self.sessions.restore()
        logger.info("studio.started", user=user)
        return user

    def directory(self) -> InfluencerDirectory:
        """Influencer directory of the current user (rebuilt when the user changes)."""
        user = self.sessions.current_user
        if user is None:
            raise NotLoggedIn()
        if self._directory is None or self._directory.username != user:
            self._directory = InfluencerDirectory(user, self.kv, self.documents)
        return self._directory

    async def open_workspace(self, influencer_id: str) -> Workspace:
        directory = self.directory()
        influencer = directory.get(influencer_id)
        if influencer is None:
            raise ValueError("influencer_not_found")
        workspace = Workspace(influencer, self.documents, on_influencer_update=directory.update)
        return await workspace.load()

    def logout(self) -> None:
        self.sessions.logout()
        self._directory = None

    async def delete_account(self) -> List[str]:
        """
        Credential removal and logout happen first; deleting the user's influencers and their
        documents follows as a best-effort cascade. Returns influencer ids that could not be purged.
        """
        directory = self.directory()
        username = self.sessions.delete_account()
        self._directory = None
        failed = await directory.purge()
        logger.info("studio.account_deleted", username=username, purge_failures=len(failed))
        return failed

    def storage_warning(self) -> Optional[str]:
        return self.kv.warning

    async def close(self) -> None:
        await self.documents.close()
        self.guard.backend.engine.dispose()
