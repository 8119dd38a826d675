"""Pydantic schemas: persisted domain documents and HTTP bodies."""
from studio.schemas.brand import Brand, Product
from studio.schemas.common import DocumentModel, ErrorResponse
from studio.schemas.influencer import Influencer
from studio.schemas.persona import LocationStyle, Persona, VisualAttributes
from studio.schemas.plan import DailyPostIdea, DailyStory, MonthlyPlan, PlanType, QuarterlyPlan, WeeklyPlan
from studio.schemas.post import CarouselSlide, ContentType, Post, PostStatus, StoryFrame
from studio.schemas.reel import GenerateReelRequest
from studio.schemas.session import SessionRecord
from studio.schemas.strategy import StrategyCard, StrategySource, StrategyType

__all__ = [
    "Brand",
    "Product",
    "DocumentModel",
    "ErrorResponse",
    "Influencer",
    "LocationStyle",
    "Persona",
    "VisualAttributes",
    "DailyPostIdea",
    "DailyStory",
    "MonthlyPlan",
    "PlanType",
    "QuarterlyPlan",
    "WeeklyPlan",
    "CarouselSlide",
    "ContentType",
    "Post",
    "PostStatus",
    "StoryFrame",
    "GenerateReelRequest",
    "SessionRecord",
    "StrategyCard",
    "StrategySource",
    "StrategyType",
]
