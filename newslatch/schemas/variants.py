"""Ad variant schemas."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class VariantOptions(BaseModel):
    vary_headline: bool = True
    vary_body: bool = True
    vary_cta: bool = True
    tones: List[str] = Field(default_factory=list)


class GenerateVariantsRequest(BaseModel):
    """Body for POST /generate-ad-variants."""

    ai_item_id: UUID
    count: int = Field(3, ge=1, le=10)
    options: VariantOptions = Field(default_factory=VariantOptions)


class AdVariantOut(BaseModel):
    id: UUID
    ai_item_id: UUID
    display_order: int
    variant_label: Optional[str] = None
    headline: str
    body: Optional[str] = None
    cta: Optional[str] = None
    headline_en: Optional[str] = None
    body_en: Optional[str] = None
    image_url: Optional[str] = None
    image_prompt: Optional[str] = None
    tone: str = "professional"
    focus: str = "general"
    is_favorite: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AdVariantPatchRequest(BaseModel):
    """Body for PATCH /ad-variants/{id}."""

    headline: Optional[str] = Field(None, min_length=1)
    body: Optional[str] = None
    cta: Optional[str] = None
    headline_en: Optional[str] = None
    body_en: Optional[str] = None
    image_url: Optional[str] = None
    image_prompt: Optional[str] = None
    tone: Optional[str] = None
    focus: Optional[str] = None
    is_favorite: Optional[bool] = None
    display_order: Optional[int] = Field(None, ge=1)
