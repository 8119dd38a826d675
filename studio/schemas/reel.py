"""Reel proxy request schema."""
from typing import Any, Optional

from pydantic import BaseModel, Field


class GenerateReelRequest(BaseModel):
    """Body for POST /api/generate-reel. prompt is checked by the handler so a missing one is a 400, not a 422."""

    prompt: Optional[str] = Field(None, description="Text prompt for the video")
    # Any JSON value is accepted; only an object's "name" is logged. Never sent upstream.
    persona: Optional[Any] = Field(None, description="Persona snapshot")

    def persona_name(self) -> Optional[str]:
        if isinstance(self.persona, dict):
            name = self.persona.get("name")
            return name if isinstance(name, str) else None
        return None
