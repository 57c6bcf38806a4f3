"""Campaign suggestion schemas."""
from typing import List, Optional

from pydantic import BaseModel, Field


class CampaignSuggestionRequest(BaseModel):
    """Body for POST /ai-campaign-suggestions."""

    url: str = Field(..., min_length=1)
    name: Optional[str] = None


class CampaignSuggestionResponse(BaseModel):
    success: bool = True
    suggested_tags: List[str] = Field(default_factory=list)
    suggested_description: str = ""
    source: str = Field(..., description="ai-generated | fallback")
