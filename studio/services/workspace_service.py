"""
Workspace controller for one influencer.
- load(): the five documents (persona, plans, posts, brands, strategies) are loaded concurrently;
  mutations are refused until loading completes. Nothing is saved during load.
- Every mutation is a pure list transform (add prepends, update replaces by id, delete filters by id)
  followed by a save of exactly that category, from the latest in-memory snapshot.
- Storage failures never propagate: they become a dismissible warning and the workspace keeps working.
"""
import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import ValidationError

from studio.logging_config import get_logger
from studio.schemas.brand import Brand
from studio.schemas.common import DocumentModel
from studio.schemas.influencer import Influencer
from studio.schemas.persona import Persona
from studio.schemas.plan import QuarterlyPlan
from studio.schemas.post import Post, PostStatus
from studio.schemas.strategy import StrategyCard
from studio.services.persona_service import baseline_persona, ensure_identity_unchanged, merge_persona
from studio.storage.document_store import DocumentStore, DocumentStoreError
from studio.storage.keys import DocumentCategory, document_key

logger = get_logger(__name__)

LOAD_WARNING = "Failed to load data from database."
SAVE_WARNING = "Failed to save changes to the database."

T = TypeVar("T", bound=DocumentModel)


class WorkspaceNotReady(RuntimeError):
    """Raised when a mutation is attempted while the workspace is still loading."""

    def __init__(self) -> None:
        super().__init__("workspace_loading")


def prepend_item(items: Sequence[T], item: T) -> List[T]:
    """Newest first. Re-adding an existing id moves it to the front instead of duplicating it."""
    return [item, *(existing for existing in items if getattr(existing, "id") != getattr(item, "id"))]


def replace_by_id(items: Sequence[T], item: T) -> List[T]:
    return [item if getattr(existing, "id") == getattr(item, "id") else existing for existing in items]


def remove_by_id(items: Sequence[T], item_id: str) -> List[T]:
    return [existing for existing in items if getattr(existing, "id") != item_id]


def _parse_collection(raw: Any, model: Type[T], category: DocumentCategory) -> List[T]:
    """Saved list -> models. A malformed document or entry is dropped, never fatal."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning("workspace.document_malformed", category=category.value)
        return []
    out: List[T] = []
    for row in raw:
        try:
            out.append(model.model_validate(row))
        except ValidationError:
            logger.warning("workspace.entry_skipped", category=category.value)
    return out


class Workspace:
    """In-memory state of one influencer wired to the document store."""

    def __init__(
        self,
        influencer: Influencer,
        documents: DocumentStore,
        on_influencer_update: Optional[Callable[[Influencer], Any]] = None,
    ) -> None:
        self.influencer = influencer
        self.documents = documents
        self.on_influencer_update = on_influencer_update
        self.loading = True
        self.warning: Optional[str] = None

        self.persona: Persona = baseline_persona(influencer.name)
        self.plans: List[QuarterlyPlan] = []
        self.posts: List[Post] = []
        self.brands: List[Brand] = []
        self.strategy_cards: List[StrategyCard] = []

    def key(self, category: DocumentCategory) -> str:
        return document_key(self.influencer.id, category)

    async def load(self) -> "Workspace":
        """Load all five categories concurrently; each one defaults on its own if unreadable."""
        self.loading = True
        categories = list(DocumentCategory)
        results = await asyncio.gather(
            *(self.documents.fetch(self.key(c)) for c in categories),
            return_exceptions=True,
        )
        saved: Dict[DocumentCategory, Any] = {}
        failed = False
        for category, result in zip(categories, results):
            if isinstance(result, Exception):
                failed = True
                logger.warning("workspace.load_failed", category=category.value, error=str(result))
                result = None
            saved[category] = result

        saved_persona = saved[DocumentCategory.PERSONA]
        if isinstance(saved_persona, dict):
            self.persona = merge_persona(baseline_persona(self.influencer.name), saved_persona)
        else:
            self.persona = baseline_persona(self.influencer.name)
        self.plans = _parse_collection(saved[DocumentCategory.PLANS], QuarterlyPlan, DocumentCategory.PLANS)
        self.posts = _parse_collection(saved[DocumentCategory.POSTS], Post, DocumentCategory.POSTS)
        self.brands = _parse_collection(saved[DocumentCategory.BRANDS], Brand, DocumentCategory.BRANDS)
        self.strategy_cards = _parse_collection(
            saved[DocumentCategory.STRATEGIES], StrategyCard, DocumentCategory.STRATEGIES
        )

        if failed:
            self.warning = LOAD_WARNING
        self.loading = False
        logger.info(
            "workspace.loaded",
            influencer_id=self.influencer.id,
            plans=len(self.plans),
            posts=len(self.posts),
            brands=len(self.brands),
            strategies=len(self.strategy_cards),
        )
        return self

    def _ensure_ready(self) -> None:
        if self.loading:
            raise WorkspaceNotReady()

    def _snapshot(self, category: DocumentCategory) -> Any:
        if category == DocumentCategory.PERSONA:
            return self.persona.to_document()
        items = {
            DocumentCategory.PLANS: self.plans,
            DocumentCategory.POSTS: self.posts,
            DocumentCategory.BRANDS: self.brands,
            DocumentCategory.STRATEGIES: self.strategy_cards,
        }[category]
        return [item.to_document() for item in items]

    async def _persist(self, category: DocumentCategory) -> bool:
        try:
            await self.documents.save(self.key(category), self._snapshot(category))
            return True
        except DocumentStoreError as e:
            self.warning = SAVE_WARNING
            logger.warning("workspace.save_failed", category=category.value, error=str(e))
            return False

    def dismiss_warning(self) -> None:
        self.warning = None

    # Persona

    async def update_persona(self, persona: Persona) -> Persona:
        """Replace the persona. A renamed persona renames the owning influencer too."""
        self._ensure_ready()
        ensure_identity_unchanged(self.persona, persona)
        self.persona = persona
        await self._persist(DocumentCategory.PERSONA)
        if persona.name != self.influencer.name:
            self.influencer = self.influencer.model_copy(update={"name": persona.name})
            if self.on_influencer_update is not None:
                self.on_influencer_update(self.influencer)
        return persona

    # Posts

    async def add_post(self, post: Post) -> List[Post]:
        self._ensure_ready()
        self.posts = prepend_item(self.posts, post)
        await self._persist(DocumentCategory.POSTS)
        return self.posts

    async def update_post(self, post: Post) -> List[Post]:
        self._ensure_ready()
        self.posts = replace_by_id(self.posts, post)
        await self._persist(DocumentCategory.POSTS)
        return self.posts

    async def delete_post(self, post_id: str) -> List[Post]:
        self._ensure_ready()
        self.posts = remove_by_id(self.posts, post_id)
        await self._persist(DocumentCategory.POSTS)
        return self.posts

    # Plans

    async def add_plan(self, plan: QuarterlyPlan) -> List[QuarterlyPlan]:
        self._ensure_ready()
        self.plans = prepend_item(self.plans, plan)
        await self._persist(DocumentCategory.PLANS)
        return self.plans

    async def update_plan(self, plan: QuarterlyPlan) -> List[QuarterlyPlan]:
        self._ensure_ready()
        self.plans = replace_by_id(self.plans, plan)
        await self._persist(DocumentCategory.PLANS)
        return self.plans

    async def delete_plan(self, plan_id: str) -> List[QuarterlyPlan]:
        self._ensure_ready()
        self.plans = remove_by_id(self.plans, plan_id)
        await self._persist(DocumentCategory.PLANS)
        return self.plans

    # Brands

    async def add_brand(self, brand: Brand) -> List[Brand]:
        self._ensure_ready()
        self.brands = prepend_item(self.brands, brand)
        await self._persist(DocumentCategory.BRANDS)
        return self.brands

    async def update_brand(self, brand: Brand) -> List[Brand]:
        self._ensure_ready()
        self.brands = replace_by_id(self.brands, brand)
        await self._persist(DocumentCategory.BRANDS)
        return self.brands

    async def delete_brand(self, brand_id: str) -> List[Brand]:
        self._ensure_ready()
        self.brands = remove_by_id(self.brands, brand_id)
        await self._persist(DocumentCategory.BRANDS)
        return self.brands

    # Strategy cards

    async def add_strategy_card(self, card: StrategyCard) -> List[StrategyCard]:
        self._ensure_ready()
        self.strategy_cards = prepend_item(self.strategy_cards, card)
        await self._persist(DocumentCategory.STRATEGIES)
        return self.strategy_cards

    async def update_strategy_card(self, card: StrategyCard) -> List[StrategyCard]:
        self._ensure_ready()
        self.strategy_cards = replace_by_id(self.strategy_cards, card)
        await self._persist(DocumentCategory.STRATEGIES)
        return self.strategy_cards

    async def delete_strategy_card(self, card_id: str) -> List[StrategyCard]:
        self._ensure_ready()
        self.strategy_cards = remove_by_id(self.strategy_cards, card_id)
        await self._persist(DocumentCategory.STRATEGIES)
        return self.strategy_cards

    async def push_strategy_card(self, card_id: str, scheduled_date: Optional[str] = None) -> Post:
        """
        Turn a strategy card into a PLANNED post (prepended) and mark the card pushed.
        Raises ValueError("strategy_card_not_found") / ("strategy_card_already_pushed").
        """
        self._ensure_ready()
        card = next((c for c in self.strategy_cards if c.id == card_id), None)
        if card is None:
            raise ValueError("strategy_card_not_found")
        if card.is_pushed:
            raise ValueError("strategy_card_already_pushed")

        sponsored = card.brand_id is not None
        post = Post(
            status=PostStatus.PLANNED,
            scheduled_date=scheduled_date or card.suggested_date,
            strategy_item_id=card.id,
            type=card.type.content_type(),
            caption=card.caption_direction,
            hook=card.visual_idea,
            image_prompt=f"{card.visual_idea}. Scene: {card.scene}. Mood: {card.mood}.".strip(),
            base_city=self.persona.base_city or None,
            is_sponsored=sponsored or None,
            brand_id=card.brand_id,
            brand_name=card.brand_name,
            product_name=card.product_name,
        )
        self.posts = prepend_item(self.posts, post)
        self.strategy_cards = replace_by_id(self.strategy_cards, card.model_copy(update={"is_pushed": True}))
        await asyncio.gather(
            self._persist(DocumentCategory.POSTS),
            self._persist(DocumentCategory.STRATEGIES),
        )
        logger.info("workspace.strategy_pushed", influencer_id=self.influencer.id, card_id=card_id, post_id=post.id)
        return post
