"""
Landing pages: generate từ AI item (LLM + text bài báo gốc), public fetch theo slug,
patch, delete. Mỗi AI item tối đa một landing page (409 nếu đã có).
"""
import re
import secrets
import unicodedata
from typing import Any, Optional
from uuid import UUID

import httpx
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings
from newslatch.errors import AppError, ErrorKind
from newslatch.logging_config import get_logger
from newslatch.models import AiGeneratedItem, Campaign, LandingPage
from newslatch.schemas.ai_content import AiItemOut
from newslatch.schemas.landing_page import LandingPageOut, LandingPagePatchRequest, LandingSection
from newslatch.services.ai_usage_service import log_llm_usage
from newslatch.services.campaign_service import campaign_context
from newslatch.services.image_extractor import ARTICLE_USER_AGENT
from newslatch.services.llm_service import LLMService, LLMValidationError, require_fields
from newslatch.services.prompts import build_landing_page_prompt
from newslatch.utils.text import visible_page_text

logger = get_logger(__name__)

FEATURE = "landing_page"
ARTICLE_PLACEHOLDER = "Article content could not be retrieved. Use the headline and description."
SLUG_MAX_LENGTH = 60


def slugify(text: str) -> str:
    """ASCII slug: bỏ dấu, lowercase, chỉ a-z0-9 và '-'."""
    normalized = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug[:SLUG_MAX_LENGTH].rstrip("-") or "landing-page"


def build_slug(title: str) -> str:
    return f"{slugify(title)}-{secrets.token_hex(3)}"


async def fetch_article_text(client: httpx.AsyncClient, url: Optional[str], settings: Settings) -> str:
    """Text hiển thị của bài báo (bỏ script/style), cắt ARTICLE_CONTEXT_MAX_CHARS; lỗi => placeholder."""
    if not url:
        return ARTICLE_PLACEHOLDER
    try:
        resp = await client.get(
            url,
            headers={"User-Agent": ARTICLE_USER_AGENT},
            timeout=settings.article_fetch_timeout_seconds,
        )
    except httpx.HTTPError as e:
        logger.info("landing_page.article_fetch_failed", url=url, error=str(e))
        return ARTICLE_PLACEHOLDER
    if resp.status_code >= 400:
        logger.info("landing_page.article_fetch_failed", url=url, status=resp.status_code)
        return ARTICLE_PLACEHOLDER
    text = visible_page_text(resp.text, settings.article_context_max_chars)
    return text or ARTICLE_PLACEHOLDER


def parse_sections(raw: Any) -> list[dict[str, Any]]:
    """Validate sections từ LLM; section hỏng bị bỏ, không còn section nào => LLMValidationError."""
    sections: list[dict[str, Any]] = []
    for entry in raw if isinstance(raw, list) else []:
        if not isinstance(entry, dict):
            continue
        paragraphs = entry.get("paragraphs")
        if isinstance(paragraphs, str):
            paragraphs = [paragraphs]
        paragraphs = [str(p).strip() for p in paragraphs or [] if str(p).strip()]
        subtitle = str(entry.get("subtitle") or "").strip()
        if not subtitle and not paragraphs:
            continue
        section = LandingSection(
            subtitle=subtitle,
            paragraphs=paragraphs,
            image_url=entry.get("image_url") or None,
            image_prompt=(str(entry.get("image_prompt")).strip() or None) if entry.get("image_prompt") else None,
            cta=(str(entry.get("cta")).strip() or None) if entry.get("cta") else None,
        )
        sections.append(section.model_dump())
    if not sections:
        raise LLMValidationError("The AI response contains no valid sections")
    return sections


async def _existing_page(db: AsyncSession, ai_item_id: UUID) -> Optional[LandingPage]:
    r = await db.execute(select(LandingPage).where(LandingPage.ai_item_id == ai_item_id))
    return r.scalar_one_or_none()


async def generate_landing_page(
    db: AsyncSession,
    item: AiGeneratedItem,
    campaign: Campaign,
    client: httpx.AsyncClient,
    llm: LLMService,
    settings: Settings,
) -> dict[str, Any]:
    """
    409 nếu item đã có landing page. Lỗi parse/validate output LLM => 500
    ("Failed to parse AI response" / "Invalid AI response structure"), không tạo row.
    """
    if await _existing_page(db, item.id) is not None:
        raise AppError(
            ErrorKind.CONFLICT,
            "Landing page already exists",
            "This AI item already has a landing page; edit or delete it instead",
        )

    article_text = await fetch_article_text(client, item.link, settings)
    item_ctx = {"headline": item.headline, "clickbait": item.clickbait, "description": item.description}
    system, user = build_landing_page_prompt(
        item_ctx, campaign_context(campaign), article_text, settings.landing_page_sections
    )
    result = await llm.complete_json(system, user, feature=FEATURE)
    require_fields(result.data, {"title": str, "sections": list})
    sections = parse_sections(result.data["sections"])
    await log_llm_usage(db, settings, campaign.user_id, FEATURE, result)

    title = str(result.data["title"]).strip()
    page = LandingPage(
        ai_item_id=item.id,
        title=title,
        slug=build_slug(title),
        is_active=True,
        view_count=0,
        sections=sections,
    )
    db.add(page)
    try:
        await db.flush()
    except IntegrityError as e:
        # request đồng thời đã tạo page cho item này (unique ai_item_id)
        logger.info("landing_page.conflict", ai_item_id=str(item.id))
        raise AppError(
            ErrorKind.CONFLICT,
            "Landing page already exists",
            "This AI item already has a landing page; edit or delete it instead",
        ) from e
    logger.info("landing_page.generated", ai_item_id=str(item.id), slug=page.slug, sections=len(sections))
    return {
        "success": True,
        "message": "Landing page generated successfully",
        "landing_page": LandingPageOut.model_validate(page).model_dump(mode="json"),
        "sections_count": len(sections),
        "ai_item_id": str(item.id),
    }


async def get_public_landing_page(db: AsyncSession, slug: str) -> dict[str, Any]:
    """Chỉ page is_active; tăng view_count bằng UPDATE nguyên tử rồi đọc lại."""
    r = await db.execute(
        update(LandingPage)
        .where(LandingPage.slug == slug, LandingPage.is_active.is_(True))
        .values(view_count=LandingPage.view_count + 1)
        .returning(LandingPage.id)
        .execution_options(synchronize_session=False)
    )
    page_id = r.scalar_one_or_none()
    if page_id is None:
        raise AppError(ErrorKind.NOT_FOUND, "Landing page not found", f"No active landing page with slug {slug}")

    page = await db.get(LandingPage, page_id, populate_existing=True)
    item = await db.get(AiGeneratedItem, page.ai_item_id)
    campaign = await db.get(Campaign, item.campaign_id) if item else None
    data = LandingPageOut.model_validate(page).model_dump(mode="json")
    item_data = AiItemOut.model_validate(item).model_dump(mode="json") if item else None
    if item_data is not None:
        item_data["campaign"] = {"name": campaign.name, "url": campaign.url} if campaign else None
    data["ai_item"] = item_data
    return data


async def get_owned_landing_page(db: AsyncSession, page_id: UUID, user_id: UUID) -> LandingPage:
    page = await db.get(LandingPage, page_id)
    if page is None:
        raise AppError(ErrorKind.NOT_FOUND, "Landing page not found", f"No landing page with id {page_id}")
    item = await db.get(AiGeneratedItem, page.ai_item_id)
    campaign = await db.get(Campaign, item.campaign_id) if item else None
    if campaign is None or campaign.user_id != user_id:
        raise AppError(ErrorKind.FORBIDDEN, "Access denied", "You do not own this landing page")
    return page


async def update_landing_page(db: AsyncSession, page: LandingPage, payload: LandingPagePatchRequest) -> LandingPage:
    changes = payload.model_dump(exclude_unset=True)
    if payload.title is not None:
        page.title = payload.title.strip()
    if payload.sections is not None:
        page.sections = [s.model_dump() for s in payload.sections]
    if payload.is_active is not None:
        page.is_active = payload.is_active
    await db.flush()
    logger.info("landing_page.updated", page_id=str(page.id), fields=sorted(changes))
    return page


async def delete_landing_page(db: AsyncSession, page: LandingPage) -> None:
    page_id = page.id
    await db.delete(page)
    await db.flush()
    logger.info("landing_page.deleted", page_id=str(page_id))
