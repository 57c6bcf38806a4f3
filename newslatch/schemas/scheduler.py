"""Scheduled update schemas."""
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel


class ScheduledUpdateResponse(BaseModel):
    """Response for GET /scheduled-updates."""

    success: bool = True
    processed: bool
    message: str
    user_id: UUID
    campaign_id: Optional[UUID] = None
    campaign_name: Optional[str] = None
    current_hour: int
    updates_hour: Optional[int] = None
    forced: bool = False
    notification_sent: bool = False
    ai_result: Optional[Dict[str, Any]] = None
