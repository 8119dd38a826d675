"""Persona: visual and tonal identity of one influencer."""
from enum import Enum
from typing import List

from pydantic import Field

from studio.schemas.common import DocumentModel


class LocationStyle(str, Enum):
    LIFESTYLE = "lifestyle"
    LUXURY = "luxury"
    TRAVEL = "travel"
    LOCAL = "local"
    MIXED = "mixed"


class VisualAttributes(DocumentModel):
    """Face/body description used to build image prompts."""

    gender: str = ""
    ethnicity: str = ""
    age_range: str = ""
    face_shape: str = ""
    eyes: str = ""
    nose: str = ""
    lips: str = ""
    hair: str = ""
    body: str = ""
    distinguishing_features: str = ""


class Persona(DocumentModel):
    """
    One persona per influencer.
    face_descriptor_block locks the generated visual identity once visual_identity_initialized is set.
    visual_reference_images: [0]=front, [1]=45 left, [2]=45 right, [3]=side, [4]=lifestyle.
    """

    name: str
    age: int
    gender_expression: str = ""
    personality_traits: List[str] = Field(default_factory=list)
    communication_tone: str = ""
    visual_aesthetics: str = ""
    visual_attributes: VisualAttributes = Field(default_factory=VisualAttributes)
    dos: List[str] = Field(default_factory=list)
    donts: List[str] = Field(default_factory=list)
    target_audience: str = ""

    base_city: str = ""
    country: str = ""
    location_style: LocationStyle = LocationStyle.MIXED
    preferred_location_types: List[str] = Field(default_factory=list)

    visual_identity_initialized: bool = False
    visual_reference_images: List[str] = Field(default_factory=list)
    face_descriptor_block: str = ""
