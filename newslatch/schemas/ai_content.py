"""AI generated content schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AiGenerateRequest(BaseModel):
    """Body for POST /ai-generate."""

    campaign_id: UUID = Field(..., alias="campaignId", description="Campaign UUID")

    model_config = {"populate_by_name": True}


class AdPlacement(BaseModel):
    headline: str = ""
    body: str = ""
    cta: str = ""
    headline_en: Optional[str] = None
    body_en: Optional[str] = None


class AiItemOut(BaseModel):
    id: UUID
    campaign_id: UUID
    headline: str
    clickbait: Optional[str] = None
    link: Optional[str] = None
    relevance_score: int = 0
    trend: Optional[str] = None
    description: Optional[str] = None
    tooltip: Optional[str] = None
    ad_placement: Optional[Dict[str, Any]] = None
    tags: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    original_image_url: Optional[str] = None
    image_prompt: Optional[str] = None
    is_published: bool = False
    variant_count: int = 0
    favorite_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AiItemPatchRequest(BaseModel):
    """Body for PATCH /ai-content/{id}: publish toggle, đổi ảnh, sửa ad copy."""

    is_published: Optional[bool] = None
    image_url: Optional[str] = None
    image_prompt: Optional[str] = None
    ad_placement: Optional[AdPlacement] = None
