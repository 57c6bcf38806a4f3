"""
Sinh ảnh cho AI item: credits -> validate -> image model -> trừ credit -> nén JPEG -> lưu storage.
Thứ tự check: credits (402), content_id (400), item (404), owner (403), prompt (400).
"""
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings
from newslatch.errors import AppError, ErrorKind, InsufficientCreditsError
from newslatch.logging_config import get_logger
from newslatch.models import AiGeneratedItem, Campaign
from newslatch.schemas.images import GenerateContentImageRequest
from newslatch.services.credit_service import deduct_user_credit, require_credits
from newslatch.services.llm_service import LLMService
from newslatch.services.media_storage import MediaStorage, build_image_key, compress_image

logger = get_logger(__name__)

FEATURE = "content_image"
ACTION = "generate images"


async def generate_content_image(
    db: AsyncSession,
    user_id: UUID,
    payload: GenerateContentImageRequest,
    llm: LLMService,
    storage: MediaStorage,
    settings: Settings,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    await require_credits(db, user_id, ACTION)

    if payload.content_id is None:
        raise AppError(ErrorKind.VALIDATION, "content_id is required", "Provide the AI content id to illustrate")
    item = await db.get(AiGeneratedItem, payload.content_id)
    if item is None:
        raise AppError(ErrorKind.NOT_FOUND, "Content not found", f"No AI generated item with id {payload.content_id}")
    campaign = await db.get(Campaign, item.campaign_id)
    if campaign is None or campaign.user_id != user_id:
        raise AppError(ErrorKind.FORBIDDEN, "Access denied", "You do not own this content")

    prompt = (payload.custom_prompt or "").strip() or (item.image_prompt or "").strip()
    if not prompt:
        raise AppError(
            ErrorKind.VALIDATION,
            "No image prompt available",
            "The content has no image_prompt; provide custom_prompt",
        )

    raw = await llm.generate_image(prompt, feature=FEATURE)

    deduction = await deduct_user_credit(db, user_id)
    if not deduction.success:
        # balance về 0 giữa lúc check và lúc trừ (request đồng thời)
        raise InsufficientCreditsError(deduction.remaining_credits, ACTION)

    try:
        encoded = compress_image(raw, quality=settings.image_jpeg_quality)
    except ValueError as e:
        raise AppError(ErrorKind.UPSTREAM, "Invalid image data", "The image model returned unreadable data") from e
    key = build_image_key(campaign.id, item.id, encoded.extension, now=now)
    image_url = await storage.save(key, encoded.data, encoded.content_type)

    item.image_url = image_url
    if payload.custom_prompt and payload.custom_prompt.strip():
        item.image_prompt = prompt
    await db.flush()
    logger.info(
        "content_image.generated",
        content_id=str(item.id),
        key=key,
        size=len(encoded.data),
        credits_remaining=deduction.remaining_credits,
    )
    return {
        "success": True,
        "message": "Image generated successfully",
        "image_url": image_url,
        "content_id": str(item.id),
        "credits_remaining": deduction.remaining_credits,
    }
