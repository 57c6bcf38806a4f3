"""API generate-paragraph: thêm một section cho landing page theo loại nội dung."""
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings, get_settings
from newslatch.db import get_db
from newslatch.dependencies import CurrentUser, get_current_user, get_llm_service
from newslatch.schemas.landing_page import GenerateParagraphRequest
from newslatch.services.llm_service import LLMService
from newslatch.services.paragraph_service import generate_paragraph

router = APIRouter(tags=["landing_pages"])


@router.post("/generate-paragraph")
async def post_generate_paragraph(
    payload: GenerateParagraphRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: LLMService = Depends(get_llm_service),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    return await generate_paragraph(db, user.id, payload, llm, settings)
