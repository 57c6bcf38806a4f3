"""API campaign-placement: HTML creatives cho ad server (static token)."""
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.db import get_db
from newslatch.dependencies import require_placement_token
from newslatch.services.placement_service import get_latest_placement, parse_campaign_id

router = APIRouter(tags=["placement"], dependencies=[Depends(require_placement_token)])


@router.get("/campaign-placement")
async def get_campaign_placement(
    campaign_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    return await get_latest_placement(db, parse_campaign_id(campaign_id))
