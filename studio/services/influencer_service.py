"""
Influencer directory: the per-user list of persona profiles (key-value tier)
and cascade deletion of each profile's document namespace.
"""
from typing import Callable, List, Optional

from pydantic import ValidationError

from studio.logging_config import get_logger
from studio.schemas.influencer import Influencer
from studio.storage.document_store import DocumentStore, DocumentStoreError
from studio.storage.keys import document_prefix, influencer_list_key
from studio.storage.kv_store import KeyValueStore

logger = get_logger(__name__)


class InfluencerDirectory:
    """Influencers owned by one user. The list is re-saved after every change."""

    def __init__(
        self,
        username: str,
        store: KeyValueStore,
        documents: DocumentStore,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.username = username
        self.store = store
        self.documents = documents
        self.id_factory = id_factory
        self.key = influencer_list_key(username)
        self._influencers: List[Influencer] = self._load()

    def _load(self) -> List[Influencer]:
        raw = self.store.get_json(self.key, [])
        if not isinstance(raw, list):
            logger.warning("influencers.list_malformed", username=self.username)
            return []
        out: List[Influencer] = []
        for row in raw:
            try:
                out.append(Influencer.model_validate(row))
            except ValidationError:
                logger.warning("influencers.entry_skipped", username=self.username)
        return out

    def _persist(self) -> bool:
        return self.store.set_json(self.key, [inf.to_document() for inf in self._influencers])

    def list(self) -> List[Influencer]:
        return list(self._influencers)

    def get(self, influencer_id: str) -> Optional[Influencer]:
        return next((inf for inf in self._influencers if inf.id == influencer_id), None)

    def create(self, name: str, handle: str) -> Influencer:
        fields = {"name": name, "handle": handle}
        if self.id_factory is not None:
            fields["id"] = self.id_factory()
        influencer = Influencer(**fields)
        self._influencers = [*self._influencers, influencer]
        self._persist()
        logger.info("influencers.created", username=self.username, influencer_id=influencer.id)
        return influencer

    def update(self, influencer: Influencer) -> Optional[Influencer]:
        """Replace by id. Unknown ids are ignored (returns None)."""
        if self.get(influencer.id) is None:
            return None
        self._influencers = [influencer if inf.id == influencer.id else inf for inf in self._influencers]
        self._persist()
        return influencer

    async def delete(self, influencer_id: str) -> int:
        """
        Remove every document under the influencer's prefix, then the metadata entry.
        A failed document delete raises DocumentStoreError with the entry still listed, so it can be retried.
        """
        removed = await self.documents.delete(document_prefix(influencer_id))
        self._influencers = [inf for inf in self._influencers if inf.id != influencer_id]
        self._persist()
        logger.info("influencers.deleted", username=self.username, influencer_id=influencer_id, documents=removed)
        return removed

    async def purge(self) -> List[str]:
        """
        Best-effort removal of every influencer namespace and the list itself (account deletion).
        Returns ids whose documents could not be deleted.
        """
        failed: List[str] = []
        for influencer in self._influencers:
            try:
                await self.documents.delete(document_prefix(influencer.id))
            except DocumentStoreError as e:
                failed.append(influencer.id)
                logger.warning("influencers.purge_failed", influencer_id=influencer.id, error=str(e))
        self._influencers = []
        self.store.remove(self.key)
        return failed
