"""RSS feed catalog schemas (admin CRUD)."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class RssFeedCreate(BaseModel):
    """Body for POST /admin-rss-feeds. name + url bắt buộc (thiếu => 400)."""

    name: Optional[str] = None
    url: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    countries: List[str] = Field(default_factory=list)
    is_active: bool = True


class RssFeedUpdate(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None
    categories: Optional[List[str]] = None
    countries: Optional[List[str]] = None
    is_active: Optional[bool] = None


class RssFeedOut(BaseModel):
    id: UUID
    name: str
    url: str
    categories: List[str] = Field(default_factory=list)
    countries: List[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
