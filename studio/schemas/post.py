"""Post: schedulable content unit moving through the approval workflow."""
from enum import Enum
from typing import List, Optional

from pydantic import Field

from studio.schemas.common import DocumentModel, new_id, now_ms


class PostStatus(str, Enum):
    PLANNED = "PLANNED"
    GENERATED = "GENERATED"
    WAITING_APPROVAL = "WAITING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PUBLISHED = "PUBLISHED"


class ContentType(str, Enum):
    FEED_POST = "feed_post"
    CAROUSEL = "carousel"
    STORY = "story"


class InteractionType(str, Enum):
    POLL = "poll"
    QUESTION = "question"
    SLIDER = "slider"
    NONE = "none"


class StoryFrame(DocumentModel):
    id: str = Field(default_factory=new_id)
    sequence_number: int
    image_prompt: str
    text_overlay: Optional[str] = None
    interaction_type: Optional[InteractionType] = None
    interaction_prompt: Optional[str] = None
    image_url: Optional[str] = None


class CarouselSlide(DocumentModel):
    slide_number: int
    image_prompt: str
    image_url: Optional[str] = None
    text_overlay: Optional[str] = None


class Post(DocumentModel):
    """
    scheduled_date: YYYY-MM-DD, scheduled_time: HH:mm.
    plan_id / strategy_item_id link back to the plan or strategy card the post came from.
    """

    id: str = Field(default_factory=new_id)
    status: PostStatus = PostStatus.PLANNED
    created_at: int = Field(default_factory=now_ms)

    scheduled_date: Optional[str] = None
    scheduled_time: Optional[str] = None

    plan_id: Optional[str] = None
    strategy_item_id: Optional[str] = None

    type: ContentType = ContentType.FEED_POST

    caption: str = ""
    hashtags: List[str] = Field(default_factory=list)
    hook: str = ""

    location_name: Optional[str] = None
    base_city: Optional[str] = None

    is_sponsored: Optional[bool] = None
    brand_id: Optional[str] = None
    brand_name: Optional[str] = None
    campaign_objective: Optional[str] = None
    product_name: Optional[str] = None
    product_image_ids: Optional[List[str]] = None

    image_prompt: Optional[str] = None
    image_url: Optional[str] = None

    carousel_slides: Optional[List[CarouselSlide]] = None
    story_frames: Optional[List[StoryFrame]] = None

    rejection_reason: Optional[str] = None
    publish_log: Optional[str] = None
