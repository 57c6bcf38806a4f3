"""Content image generation schemas."""
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class GenerateContentImageRequest(BaseModel):
    """Body for POST /generate-content-image. content_id thiếu => 400 (check sau credits)."""

    content_id: Optional[UUID] = None
    custom_prompt: Optional[str] = Field(None, max_length=4000)


class GenerateContentImageResponse(BaseModel):
    success: bool = True
    message: str
    image_url: str
    content_id: UUID
    credits_remaining: int
