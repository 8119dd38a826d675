"""Common schemas: camelCase document base and error bodies."""
import time
import uuid
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def now_ms() -> int:
    """Current time as ms epoch (the unit used by every persisted timestamp)."""
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


class DocumentModel(BaseModel):
    """
    Base for persisted entities. Stored as camelCase JSON, accepts snake_case or camelCase,
    ignores unknown keys so older and newer documents both load.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> Dict[str, Any]:
        """JSON-compatible dict for the document store."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ErrorResponse(BaseModel):
    """Error body returned by the reel proxy."""

    error: str = Field(..., description="Error message")
    details: Optional[str] = Field(None, description="Hint for resolving the error")
