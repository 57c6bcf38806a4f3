"""Campaign request/response schemas."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CampaignCreate(BaseModel):
    """Body for POST /campaigns."""

    name: str = Field(..., min_length=1, max_length=255)
    url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    product_description: Optional[str] = None
    target_audience: Optional[str] = None
    rss_categories: List[str] = Field(default_factory=list, description="vd. ['tech', 'finance']")
    rss_countries: List[str] = Field(default_factory=list, description="ISO country codes, vd. ['US', 'DE']")
    get_updates: bool = False
    updates_hour: Optional[int] = Field(None, ge=0, le=23, description="Giờ UTC chạy scheduled update")


class CampaignUpdate(BaseModel):
    """Body for PATCH /campaigns/{id}; chỉ field được gửi mới cập nhật."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    url: Optional[str] = None
    tags: Optional[List[str]] = None
    description: Optional[str] = None
    product_description: Optional[str] = None
    target_audience: Optional[str] = None
    rss_categories: Optional[List[str]] = None
    rss_countries: Optional[List[str]] = None
    get_updates: Optional[bool] = None
    updates_hour: Optional[int] = Field(None, ge=0, le=23)


class CampaignOut(BaseModel):
    id: UUID
    user_id: UUID
    name: str
    url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    product_description: Optional[str] = None
    target_audience: Optional[str] = None
    rss_categories: List[str] = Field(default_factory=list)
    rss_countries: List[str] = Field(default_factory=list)
    get_updates: bool = False
    updates_hour: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
