"""Brand / sponsor campaign metadata and its products."""
from typing import List, Optional

from pydantic import Field

from studio.schemas.common import DocumentModel, new_id, now_ms
from studio.schemas.post import ContentType


class Product(DocumentModel):
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    image_ids: List[str] = Field(default_factory=list)
    is_primary: bool = False


class Brand(DocumentModel):
    """
    product_name / product_description are the legacy single-product fields; products is the current model.
    start_date / end_date: YYYY-MM-DD campaign window; preferred_weeks e.g. [1, 3].
    """

    id: str = Field(default_factory=new_id)
    name: str
    industry: str = ""
    product_name: str = ""
    product_description: str = ""
    products: List[Product] = Field(default_factory=list)

    website_url: Optional[str] = None
    instagram_handle: Optional[str] = None
    tone: str = ""
    key_selling_points: List[str] = Field(default_factory=list)
    target_audience: str = ""
    campaign_objective: str = ""
    mandatory_mentions: List[str] = Field(default_factory=list)
    dos: List[str] = Field(default_factory=list)
    donts: List[str] = Field(default_factory=list)
    content_types: List[ContentType] = Field(default_factory=list)
    posting_frequency: str = ""

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    preferred_weeks: Optional[List[int]] = None

    created_at: int = Field(default_factory=now_ms)
