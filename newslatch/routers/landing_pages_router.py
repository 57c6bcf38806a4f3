"""API landing pages: generate từ AI item, public view theo slug, patch, delete."""
from typing import Any
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings, get_settings
from newslatch.db import get_db
from newslatch.dependencies import CurrentUser, get_current_user, get_http_client, get_llm_service
from newslatch.schemas.common import MessageResponse
from newslatch.schemas.landing_page import GenerateLandingPageRequest, LandingPageOut, LandingPagePatchRequest
from newslatch.services.campaign_service import get_owned_item
from newslatch.services.landing_page_service import (
    delete_landing_page,
    generate_landing_page,
    get_owned_landing_page,
    get_public_landing_page,
    update_landing_page,
)
from newslatch.services.llm_service import LLMService

router = APIRouter(tags=["landing_pages"])


@router.post("/generate-landing-page", status_code=status.HTTP_201_CREATED)
async def post_generate_landing_page(
    payload: GenerateLandingPageRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
    llm: LLMService = Depends(get_llm_service),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """404 item, 403 không phải owner, 409 đã có landing page, 500 output LLM lỗi."""
    item, campaign = await get_owned_item(db, payload.ai_item_id, user.id)
    return await generate_landing_page(db, item, campaign, client, llm, settings)


@router.get("/public/landing-pages/{slug}")
async def get_public_page(slug: str, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    """Không cần auth. Chỉ page active; mỗi lần xem tăng view_count."""
    page = await get_public_landing_page(db, slug)
    return {"success": True, "landing_page": page}


@router.patch("/landing-pages/{page_id}", response_model=LandingPageOut)
async def patch_landing_page(
    page_id: UUID,
    payload: LandingPagePatchRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> LandingPageOut:
    page = await get_owned_landing_page(db, page_id, user.id)
    return LandingPageOut.model_validate(await update_landing_page(db, page, payload))


@router.delete("/landing-pages/{page_id}", response_model=MessageResponse)
async def delete_landing_page_route(
    page_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    page = await get_owned_landing_page(db, page_id, user.id)
    await delete_landing_page(db, page)
    return MessageResponse(message="Landing page deleted")
