"""API ảnh cho section của landing page: sinh ảnh và xóa toàn bộ ảnh của một page."""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings, get_settings
from newslatch.db import get_db
from newslatch.dependencies import CurrentUser, get_current_user, get_llm_service, get_media_storage
from newslatch.schemas.landing_page import GenerateLandingPageImageRequest
from newslatch.services.landing_page_image_service import delete_section_images, generate_section_image
from newslatch.services.landing_page_service import get_owned_landing_page
from newslatch.services.llm_service import LLMService
from newslatch.services.media_storage import MediaStorage

router = APIRouter(tags=["landing_pages"])


@router.post("/generate-landing-page-image")
async def post_generate_landing_page_image(
    payload: GenerateLandingPageImageRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: LLMService = Depends(get_llm_service),
    storage: MediaStorage = Depends(get_media_storage),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """400 thiếu params / page không có section / index ngoài range, 404 page, 403 owner, 502 ảnh hỏng."""
    return await generate_section_image(db, user.id, payload, llm, storage, settings)


@router.delete("/landing-pages/{page_id}/images")
async def delete_landing_page_images(
    page_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
) -> dict[str, Any]:
    page = await get_owned_landing_page(db, page_id, user.id)
    return await delete_section_images(db, page, storage)
