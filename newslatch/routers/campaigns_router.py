"""API campaigns: CRUD của owner (bearer token)."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.db import get_db
from newslatch.dependencies import CurrentUser, get_current_user
from newslatch.schemas.campaign import CampaignCreate, CampaignOut, CampaignUpdate
from newslatch.schemas.common import MessageResponse
from newslatch.services.campaign_service import (
    create_campaign,
    delete_campaign,
    get_owned_campaign,
    list_campaigns,
    update_campaign,
)

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


@router.post("", response_model=CampaignOut, status_code=status.HTTP_201_CREATED)
async def post_campaign(
    payload: CampaignCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CampaignOut:
    campaign = await create_campaign(db, user.id, payload)
    return CampaignOut.model_validate(campaign)


@router.get("", response_model=list[CampaignOut])
async def get_campaigns(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[CampaignOut]:
    """Campaign của user hiện tại, mới nhất trước."""
    return [CampaignOut.model_validate(c) for c in await list_campaigns(db, user.id)]


@router.get("/{campaign_id}", response_model=CampaignOut)
async def get_campaign(
    campaign_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CampaignOut:
    return CampaignOut.model_validate(await get_owned_campaign(db, campaign_id, user.id))


@router.patch("/{campaign_id}", response_model=CampaignOut)
async def patch_campaign(
    campaign_id: UUID,
    payload: CampaignUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CampaignOut:
    """Cập nhật field được gửi (gồm get_updates / updates_hour)."""
    campaign = await get_owned_campaign(db, campaign_id, user.id)
    return CampaignOut.model_validate(await update_campaign(db, campaign, payload))


@router.delete("/{campaign_id}", response_model=MessageResponse)
async def delete_campaign_route(
    campaign_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    campaign = await get_owned_campaign(db, campaign_id, user.id)
    await delete_campaign(db, campaign)
    return MessageResponse(message="Campaign deleted")
