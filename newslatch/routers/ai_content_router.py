"""API AI content: generate từ RSS (POST /ai-generate), browse/patch/delete (/ai-content)."""
from typing import Any, Optional
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings, get_settings
from newslatch.db import get_db
from newslatch.dependencies import (
    CurrentUser,
    get_current_user,
    get_http_client,
    get_image_extractor,
    get_llm_service,
)
from newslatch.schemas.ai_content import AiGenerateRequest, AiItemOut, AiItemPatchRequest
from newslatch.schemas.common import MessageResponse
from newslatch.services.ai_content_service import (
    DATE_CHOICES,
    ORDER_CHOICES,
    SCORE_CHOICES,
    SORT_CHOICES,
    STATUS_CHOICES,
    AiContentFilters,
    delete_ai_item,
    list_ai_content,
    update_ai_item,
)
from newslatch.services.ai_generate_service import generate_ai_content
from newslatch.services.campaign_service import get_owned_campaign, get_owned_item
from newslatch.services.image_extractor import ImageExtractor
from newslatch.services.llm_service import LLMService
from newslatch.utils.query_params import (
    ensure_choice_query,
    ensure_positive_int_query,
    ensure_uuid_query,
)

router = APIRouter(tags=["ai_content"])

MAX_PAGE_SIZE = 100


@router.post("/ai-generate")
async def post_ai_generate(
    payload: AiGenerateRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
    llm: LLMService = Depends(get_llm_service),
    extractor: ImageExtractor = Depends(get_image_extractor),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """RSS -> ảnh -> LLM -> lưu ai_generated_items. Cần ít nhất 1 credit (không trừ)."""
    return await generate_ai_content(
        db,
        payload.campaign_id,
        user_id=user.id,
        client=client,
        llm=llm,
        extractor=extractor,
        settings=settings,
    )


@router.get("/ai-content")
async def get_ai_content(
    campaign_id: Optional[str] = Query(None, alias="campaignId"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="all | published | unpublished"),
    score_range: Optional[str] = Query(None, alias="scoreRange", description="all | high | medium | low"),
    date_range: Optional[str] = Query(None, alias="dateRange", description="all | today | week | month"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="created_at | relevance_score | trend"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="asc | desc"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    cid = ensure_uuid_query("campaignId", campaign_id, missing_error="Campaign ID is required")
    filters = AiContentFilters(
        status=ensure_choice_query("status", status, STATUS_CHOICES, "all"),
        score_range=ensure_choice_query("scoreRange", score_range, SCORE_CHOICES, "all"),
        date_range=ensure_choice_query("dateRange", date_range, DATE_CHOICES, "all"),
        sort_by=ensure_choice_query("sortBy", sort_by, SORT_CHOICES, "created_at"),
        sort_order=ensure_choice_query("sortOrder", sort_order, ORDER_CHOICES, "desc"),
    )
    page_no = ensure_positive_int_query("page", page, default=1)
    page_size = ensure_positive_int_query("limit", limit, default=10, maximum=MAX_PAGE_SIZE)
    campaign = await get_owned_campaign(db, cid, user.id)
    return await list_ai_content(db, campaign.id, filters, page=page_no, limit=page_size)


@router.patch("/ai-content/{item_id}", response_model=AiItemOut)
async def patch_ai_content(
    item_id: UUID,
    payload: AiItemPatchRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> AiItemOut:
    """Publish toggle, đổi image_url, sửa ad_placement."""
    item, _ = await get_owned_item(db, item_id, user.id)
    return AiItemOut.model_validate(await update_ai_item(db, item, payload))


@router.delete("/ai-content/{item_id}", response_model=MessageResponse)
async def delete_ai_content(
    item_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    item, _ = await get_owned_item(db, item_id, user.id)
    await delete_ai_item(db, item)
    return MessageResponse(message="AI content deleted")
