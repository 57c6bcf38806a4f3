"""Landing page schemas."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class LandingSection(BaseModel):
    subtitle: str = ""
    paragraphs: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    image_prompt: Optional[str] = None
    cta: Optional[str] = None


class GenerateLandingPageRequest(BaseModel):
    """Body for POST /generate-landing-page."""

    ai_item_id: UUID


class LandingPageOut(BaseModel):
    id: UUID
    ai_item_id: UUID
    title: str
    slug: str
    is_active: bool = True
    view_count: int = 0
    sections: List[LandingSection] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LandingPagePatchRequest(BaseModel):
    """Body for PATCH /landing-pages/{id}."""

    title: Optional[str] = Field(None, min_length=1)
    sections: Optional[List[LandingSection]] = None
    is_active: Optional[bool] = None


class GenerateLandingPageImageRequest(BaseModel):
    """
    Body for POST /generate-landing-page-image.
    landing_page_id / section_index thiếu => 400; image_prompt trống => dùng image_prompt của section.
    """

    landing_page_id: Optional[UUID] = None
    section_index: Optional[int] = None
    image_prompt: Optional[str] = Field(None, max_length=4000)


class GenerateParagraphRequest(BaseModel):
    """Body for POST /generate-paragraph (camelCase như client web)."""

    landing_page_id: Optional[UUID] = Field(None, alias="landingPageId")
    prompt: Optional[str] = Field(None, max_length=4000)
    content_type: Optional[str] = Field(None, alias="contentType", max_length=64)
    context: Optional[str] = Field(None, max_length=8000)

    model_config = {"populate_by_name": True}
