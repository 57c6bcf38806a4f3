"""API generate-content-image: sinh ảnh cho AI item (trừ 1 credit)."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings, get_settings
from newslatch.db import get_db
from newslatch.dependencies import CurrentUser, get_current_user, get_llm_service, get_media_storage
from newslatch.schemas.images import GenerateContentImageRequest, GenerateContentImageResponse
from newslatch.services.content_image_service import generate_content_image
from newslatch.services.llm_service import LLMService
from newslatch.services.media_storage import MediaStorage

router = APIRouter(tags=["content_images"])


@router.post("/generate-content-image", response_model=GenerateContentImageResponse)
async def post_generate_content_image(
    payload: GenerateContentImageRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: LLMService = Depends(get_llm_service),
    storage: MediaStorage = Depends(get_media_storage),
    settings: Settings = Depends(get_settings),
) -> GenerateContentImageResponse:
    """Check: credits (402) -> content_id (400) -> item (404) -> owner (403) -> prompt (400)."""
    result = await generate_content_image(db, user.id, payload, llm, storage, settings)
    return GenerateContentImageResponse(**result)
