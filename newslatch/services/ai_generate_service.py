"""
Pipeline RSS -> AI content cho một campaign:
aggregate RSS -> extract ảnh -> build prompt -> LLM (JSON) -> map + lưu ai_generated_items.
Item mới luôn is_published=False. DEDUPE_GENERATED_ITEMS: bỏ qua (campaign, link) đã có.
"""
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings
from newslatch.errors import AppError, ErrorKind
from newslatch.logging_config import bind_user_context, get_logger
from newslatch.models import AiGeneratedItem, Campaign
from newslatch.schemas.ai_content import AiItemOut
from newslatch.services.ai_usage_service import log_llm_usage
from newslatch.services.campaign_service import campaign_context
from newslatch.services.credit_service import require_credits
from newslatch.services.image_extractor import ImageCandidate, ImageExtractor
from newslatch.services.llm_service import (
    LLMError,
    LLMFailurePolicy,
    LLMResult,
    LLMService,
    apply_failure_policy,
    require_fields,
)
from newslatch.services.prompts import build_content_prompt
from newslatch.services.rss_service import get_campaign_or_404, get_latest_rss_content

logger = get_logger(__name__)

FEATURE = "ai_generate"
DEFAULT_CTA = "Learn More"


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _str_list(value: Any, limit: int = 10) -> list[str]:
    if not isinstance(value, list):
        return []
    out = []
    for v in value:
        s = _text(v)
        if s and s not in out:
            out.append(s)
    return out[:limit]


def _relevance(value: Any) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, min(100, score))


def build_ad_placement(result: dict[str, Any]) -> dict[str, Any]:
    """ad_placement từ LLM; thiếu thì dựng từ clickbait/description."""
    raw = result.get("ad_placement") if isinstance(result.get("ad_placement"), dict) else {}
    placement = {
        "headline": _text(raw.get("headline")) or _text(result.get("clickbait")) or _text(result.get("headline")),
        "body": _text(raw.get("body")) or _text(result.get("description")),
        "cta": _text(raw.get("cta")) or DEFAULT_CTA,
    }
    for key in ("headline_en", "body_en"):
        if _text(raw.get(key)):
            placement[key] = _text(raw.get(key))
    return placement


def map_result_to_item(
    result: dict[str, Any],
    campaign: Campaign,
    image_by_link: dict[str, str],
) -> Optional[AiGeneratedItem]:
    """Một entry LLM -> AiGeneratedItem (chưa add session). Thiếu headline => None."""
    headline = _text(result.get("headline"))
    if not headline:
        return None
    link = _text(result.get("link"))
    image_url = image_by_link.get(link) if link else None
    tags = _str_list(result.get("tags")) or list(campaign.rss_categories or [])
    return AiGeneratedItem(
        campaign_id=campaign.id,
        headline=headline,
        clickbait=_text(result.get("clickbait")) or None,
        link=link or None,
        relevance_score=_relevance(result.get("relevance_score")),
        trend=_text(result.get("trend")) or None,
        description=_text(result.get("description")) or None,
        tooltip=_text(result.get("tooltip")) or None,
        ad_placement=build_ad_placement(result),
        tags=tags,
        keywords=_str_list(result.get("keywords")),
        image_url=image_url,
        original_image_url=image_url,
        image_prompt=_text(result.get("image_prompt")) or None,
        is_published=False,
    )


async def _existing_links(db: AsyncSession, campaign_id: UUID, links: list[str]) -> set[str]:
    if not links:
        return set()
    r = await db.execute(
        select(AiGeneratedItem.link).where(
            AiGeneratedItem.campaign_id == campaign_id,
            AiGeneratedItem.link.in_(links),
        )
    )
    return {link for link in r.scalars().all() if link}


async def dedupe_items(
    db: AsyncSession,
    campaign_id: UUID,
    items: list[AiGeneratedItem],
) -> tuple[list[AiGeneratedItem], int]:
    """Bỏ item có link đã tồn tại cho campaign hoặc lặp lại trong batch. Trả (kept, skipped)."""
    existing = await _existing_links(db, campaign_id, [i.link for i in items if i.link])
    kept: list[AiGeneratedItem] = []
    seen: set[str] = set()
    for item in items:
        if item.link and (item.link in existing or item.link in seen):
            continue
        if item.link:
            seen.add(item.link)
        kept.append(item)
    return kept, len(items) - len(kept)


async def generate_ai_content(
    db: AsyncSession,
    campaign_id: UUID,
    *,
    user_id: Optional[UUID],
    client: httpx.AsyncClient,
    llm: LLMService,
    extractor: ImageExtractor,
    settings: Settings,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Chạy toàn bộ pipeline cho campaign. user_id: owner (None khi gọi từ scheduler đã xác định user).
    Raises AppError: 404 campaign, 403 không phải owner, 402 hết credit,
    400 không có category/RSS, 500 lỗi LLM (policy raise).
    """
    campaign = await get_campaign_or_404(db, campaign_id)
    if user_id is not None and campaign.user_id != user_id:
        raise AppError(ErrorKind.FORBIDDEN, "Access denied", "You do not own this campaign")
    bind_user_context(campaign.user_id, campaign.id)
    await require_credits(db, campaign.user_id, "generate AI content")

    if not campaign.rss_categories:
        raise AppError(
            ErrorKind.VALIDATION,
            "No RSS categories configured",
            "Add at least one RSS category to the campaign before generating content",
        )

    rss = await get_latest_rss_content(db, client, campaign.id, settings, now=now)
    if not rss.items:
        raise AppError(ErrorKind.VALIDATION, "No RSS content found", rss.message)

    images = await extractor.extract_images(
        [ImageCandidate(headline=i.title, link=i.link, image_url=i.image_url) for i in rss.items]
    )
    image_by_link = {r.link: r.extracted_image_url for r in images if r.link and r.extracted_image_url}

    news = [{"headline": i.title, "link": i.link} for i in rss.items]
    system, user = build_content_prompt(news, rss.rss_categories, campaign_context(campaign))
    policy = LLMFailurePolicy.parse(settings.llm_failure_policy)
    llm_result: Optional[LLMResult] = None
    try:
        llm_result = await llm.complete_json(system, user, feature=FEATURE)
        require_fields(llm_result.data, {"results": list})
    except LLMError as e:
        logger.warning("ai_generate.llm_failed", campaign_id=str(campaign.id), error=e.error, details=e.details)
        llm_result = apply_failure_policy(policy, e, lambda: None, FEATURE)

    ai_analysis: dict[str, Any] = {
        "trend_summary": "",
        "campaign_strategy": "",
        "rss_items_analyzed": len(rss.items),
        "feeds_processed": rss.feeds_processed,
        "feeds_failed": rss.feeds_failed,
    }
    results: list[dict[str, Any]] = []
    if llm_result is not None:
        await log_llm_usage(db, settings, campaign.user_id, FEATURE, llm_result)
        results = [r for r in llm_result.data.get("results", []) if isinstance(r, dict)]
        ai_analysis["trend_summary"] = _text(llm_result.data.get("trend_summary"))
        ai_analysis["campaign_strategy"] = _text(llm_result.data.get("campaign_strategy"))

    items = [it for it in (map_result_to_item(r, campaign, image_by_link) for r in results) if it is not None]
    skipped = 0
    if settings.dedupe_generated_items:
        items, skipped = await dedupe_items(db, campaign.id, items)

    if not items:
        logger.info("ai_generate.nothing_saved", campaign_id=str(campaign.id), results=len(results), skipped=skipped)
        return {
            "success": True,
            "message": "No AI content generated" if not results else "No new AI content (all items already exist)",
            "items_generated": 0,
            "items_with_images": 0,
            "items_skipped": skipped,
            "campaign_id": str(campaign.id),
            "ai_analysis": ai_analysis,
            "saved_items": [],
        }

    db.add_all(items)
    await db.flush()
    with_images = sum(1 for it in items if it.image_url)
    logger.info(
        "ai_generate.saved",
        campaign_id=str(campaign.id),
        items=len(items),
        with_images=with_images,
        skipped=skipped,
    )
    return {
        "success": True,
        "message": f"Generated {len(items)} AI content items",
        "items_generated": len(items),
        "items_with_images": with_images,
        "items_skipped": skipped,
        "campaign_id": str(campaign.id),
        "ai_analysis": ai_analysis,
        "saved_items": [AiItemOut.model_validate(it).model_dump(mode="json") for it in items],
    }
