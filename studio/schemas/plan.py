"""Planning hierarchy: QuarterlyPlan -> MonthlyPlan -> WeeklyPlan -> daily ideas / stories -> story frames."""
from enum import Enum
from typing import List, Optional

from pydantic import Field

from studio.schemas.common import DocumentModel, new_id
from studio.schemas.post import ContentType, StoryFrame


class PlanType(str, Enum):
    ORGANIC = "organic"
    BRAND = "brand"


class DailyPostIdea(DocumentModel):
    day: str
    content_type: ContentType = ContentType.FEED_POST
    hook: str = ""
    concept: str = ""
    cta: str = ""
    hashtags: List[str] = Field(default_factory=list)

    location_name: Optional[str] = None
    location_type: Optional[str] = None
    is_location_specific: Optional[bool] = None

    is_sponsored: Optional[bool] = None
    brand_id: Optional[str] = None
    brand_name: Optional[str] = None

    is_selected: Optional[bool] = None


class DailyStory(DocumentModel):
    id: str = Field(default_factory=new_id)
    day: str
    concept: str = ""
    frames: List[StoryFrame] = Field(default_factory=list)
    is_selected: Optional[bool] = None


class WeeklyPlan(DocumentModel):
    id: str = Field(default_factory=new_id)
    week_number: int
    posting_frequency: int = 0
    emotional_intent: str = ""
    daily_ideas: List[DailyPostIdea] = Field(default_factory=list)
    daily_stories: Optional[List[DailyStory]] = None


class MonthlyPlan(DocumentModel):
    id: str = Field(default_factory=new_id)
    month_name: str
    campaigns: List[str] = Field(default_factory=list)
    focus_topics: List[str] = Field(default_factory=list)
    weeks: List[WeeklyPlan] = Field(default_factory=list)


class QuarterlyPlan(DocumentModel):
    """Top of the hierarchy; brand_id only for brand plans. Each level owns the next."""

    id: str = Field(default_factory=new_id)
    type: PlanType = PlanType.ORGANIC
    brand_id: Optional[str] = None
    quarter: str
    brand_positioning: str = ""
    core_themes: List[str] = Field(default_factory=list)
    visual_direction: str = ""
    months: List[MonthlyPlan] = Field(default_factory=list)
