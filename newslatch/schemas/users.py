"""User profile schemas (admin-users)."""
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel


class UserProfileOut(BaseModel):
    id: UUID
    email: Optional[str] = None
    credits: int = 0
    is_admin: bool = False
    telegram_chat_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AdminFlagUpdate(BaseModel):
    """Body for PUT /admin-users?user_id=. Kiểu bool được check trong service (không ép "true" => True)."""

    is_admin: Any = None
