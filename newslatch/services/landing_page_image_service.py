"""
Ảnh minh họa cho từng section của landing page (không trừ credit).
Key: landing-pages/{page_id}/{YYYY-MM-DD}_{uuid}.jpg; cleanup xóa cả folder của page.
"""
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings
from newslatch.errors import AppError, ErrorKind
from newslatch.logging_config import get_logger
from newslatch.models import LandingPage
from newslatch.schemas.landing_page import GenerateLandingPageImageRequest
from newslatch.services.landing_page_service import get_owned_landing_page
from newslatch.services.llm_service import LLMService
from newslatch.services.media_storage import MediaStorage, build_image_key, compress_image

logger = get_logger(__name__)

FEATURE = "landing_page_image"
KEY_FOLDER = "landing-pages"


def landing_page_image_prefix(page_id: UUID) -> str:
    return f"{KEY_FOLDER}/{page_id}/"


def _require_params(payload: GenerateLandingPageImageRequest) -> tuple[UUID, int]:
    if payload.landing_page_id is None or payload.section_index is None:
        raise AppError(
            ErrorKind.VALIDATION,
            "Missing required parameters",
            "landing_page_id and section_index are required",
        )
    return payload.landing_page_id, payload.section_index


async def generate_section_image(
    db: AsyncSession,
    user_id: UUID,
    payload: GenerateLandingPageImageRequest,
    llm: LLMService,
    storage: MediaStorage,
    settings: Settings,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Thứ tự check: params (400), page (404), owner (403), sections (400), index (400), prompt (400).
    Ảnh lưu xong mới ghi image_url vào section; sections được gán lại để JSON column ghi xuống DB.
    """
    page_id, index = _require_params(payload)
    page = await get_owned_landing_page(db, page_id, user_id)

    sections = [dict(s) for s in page.sections or [] if isinstance(s, dict)]
    if not sections:
        raise AppError(ErrorKind.VALIDATION, "Invalid landing page structure", "The landing page has no sections")
    if index < 0 or index >= len(sections):
        raise AppError(
            ErrorKind.VALIDATION,
            "Invalid section index",
            f"section_index must be between 0 and {len(sections) - 1}",
        )

    section = sections[index]
    custom_prompt = (payload.image_prompt or "").strip()
    prompt = custom_prompt or str(section.get("image_prompt") or "").strip()
    if not prompt:
        raise AppError(
            ErrorKind.VALIDATION,
            "No image prompt available",
            "The section has no image_prompt; provide image_prompt",
        )

    raw = await llm.generate_image(prompt, feature=FEATURE)
    try:
        encoded = compress_image(raw, quality=settings.image_jpeg_quality)
    except ValueError as e:
        raise AppError(ErrorKind.UPSTREAM, "Invalid image data", "The image model returned unreadable data") from e
    key = build_image_key(KEY_FOLDER, page.id, encoded.extension, now=now)
    image_url = await storage.save(key, encoded.data, encoded.content_type)

    section["image_url"] = image_url
    if custom_prompt:
        section["image_prompt"] = custom_prompt
    page.sections = sections
    await db.flush()
    logger.info("landing_page.image_generated", page_id=str(page.id), section_index=index, key=key)
    return {
        "success": True,
        "message": "Image generated and uploaded successfully",
        "image_url": image_url,
        "section_index": index,
        "landing_page_id": str(page.id),
    }


async def delete_section_images(db: AsyncSession, page: LandingPage, storage: MediaStorage) -> dict[str, Any]:
    """Xóa mọi ảnh trong folder của page; section nào trỏ tới ảnh đã xóa thì image_url = None."""
    deleted = await storage.delete_prefix(landing_page_image_prefix(page.id))
    deleted_urls = {storage.public_url(key) for key in deleted}

    sections = [dict(s) for s in page.sections or [] if isinstance(s, dict)]
    cleared = 0
    for section in sections:
        if section.get("image_url") and section["image_url"] in deleted_urls:
            section["image_url"] = None
            cleared += 1
    if cleared:
        page.sections = sections
        await db.flush()
    logger.info("landing_page.images_deleted", page_id=str(page.id), deleted=len(deleted), sections_cleared=cleared)
    return {
        "success": True,
        "message": "Images deleted successfully",
        "deleted_count": len(deleted),
        "landing_page_id": str(page.id),
    }
