"""Strategy card: atomic content idea, later pushed into a Post."""
from enum import Enum
from typing import List, Optional

from pydantic import Field

from studio.schemas.common import DocumentModel, new_id, now_ms
from studio.schemas.post import ContentType


class StrategyType(str, Enum):
    ORGANIC_FEED = "organic_feed"
    ORGANIC_STORY = "organic_story"
    ORGANIC_REEL = "organic_reel"
    BRAND_FEED = "brand_feed"
    BRAND_STORY = "brand_story"
    BRAND_REEL = "brand_reel"

    def content_type(self) -> ContentType:
        """Post type a card of this kind becomes when pushed."""
        if self in (StrategyType.ORGANIC_STORY, StrategyType.BRAND_STORY):
            return ContentType.STORY
        return ContentType.FEED_POST


class StrategySource(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"
    INTELLIGENCE = "intelligence"


class StrategyCard(DocumentModel):
    id: str = Field(default_factory=new_id)
    type: StrategyType = StrategyType.ORGANIC_FEED
    created_at: int = Field(default_factory=now_ms)
    source: Optional[StrategySource] = None

    visual_idea: str = ""
    scene: str = ""
    mood: str = ""
    story: str = ""
    caption_direction: str = ""
    suggested_date: Optional[str] = None

    camera_style: Optional[str] = None
    reference_image_id: Optional[str] = None

    brand_id: Optional[str] = None
    brand_name: Optional[str] = None
    product_name: Optional[str] = None
    product_context: Optional[str] = None
    mandatory_mentions: Optional[List[str]] = None

    is_pushed: Optional[bool] = None
