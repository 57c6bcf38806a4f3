"""API rss-feeds: nội dung RSS mới nhất (action=content) hoặc danh sách feed match (action=feeds)."""
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings, get_settings
from newslatch.db import get_db
from newslatch.dependencies import CurrentUser, get_current_user, get_http_client
from newslatch.schemas.rss_feeds import RssFeedOut
from newslatch.services.campaign_service import get_owned_campaign
from newslatch.services.rss_service import get_filtered_rss_feeds, get_latest_rss_content
from newslatch.utils.query_params import ensure_choice_query, ensure_uuid_query

router = APIRouter(prefix="/rss-feeds", tags=["rss"])

ACTIONS = ("content", "feeds")


@router.get("")
async def get_rss_feeds(
    campaign_id: Optional[str] = Query(None, alias="campaignId"),
    action: Optional[str] = Query(None, description="content | feeds"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    cid = ensure_uuid_query("campaignId", campaign_id, missing_error="Campaign ID is required")
    mode = ensure_choice_query("action", action, ACTIONS, default="content")
    campaign = await get_owned_campaign(db, cid, user.id)
    if mode == "feeds":
        feeds = await get_filtered_rss_feeds(db, campaign)
        return {
            "success": True,
            "feeds": [RssFeedOut.model_validate(f).model_dump(mode="json") for f in feeds],
            "count": len(feeds),
            "campaign_id": str(campaign.id),
        }
    content = await get_latest_rss_content(db, client, campaign.id, settings)
    return content.to_dict()
