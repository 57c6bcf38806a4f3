"""
Ad variants: generate (LLM), list, patch, delete.
variant_count / favorite_count trên ai_generated_items được giữ đồng bộ ở đây.
Không cho xóa variant cuối cùng của một item.
"""
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings
from newslatch.errors import AppError, ErrorKind
from newslatch.logging_config import get_logger
from newslatch.models import AdVariant, AiGeneratedItem, Campaign
from newslatch.schemas.variants import AdVariantPatchRequest, VariantOptions
from newslatch.services.ai_usage_service import log_llm_usage
from newslatch.services.campaign_service import campaign_context
from newslatch.services.llm_service import (
    LLMError,
    LLMFailurePolicy,
    LLMService,
    apply_failure_policy,
    require_fields,
)
from newslatch.services.prompts import build_variant_prompt, language_for_countries

logger = get_logger(__name__)

FEATURE = "ad_variants"
VARIANT_TEMPERATURE = 0.8
VARIANT_MAX_TOKENS = 2000
DEFAULT_TONE = "professional"
DEFAULT_FOCUS = "general"


def _text(value: Any) -> Optional[str]:
    s = str(value).strip() if value is not None else ""
    return s or None


def _item_context(item: AiGeneratedItem) -> dict[str, Any]:
    return {
        "headline": item.headline,
        "clickbait": item.clickbait,
        "description": item.description,
        "trend": item.trend,
        "ad_placement": item.ad_placement or {},
    }


async def _refresh_counts(db: AsyncSession, item: AiGeneratedItem) -> None:
    """Đếm lại variant_count/favorite_count từ bảng ad_variants."""
    total = await db.execute(select(func.count()).where(AdVariant.ai_item_id == item.id))
    favorites = await db.execute(
        select(func.count()).where(AdVariant.ai_item_id == item.id, AdVariant.is_favorite.is_(True))
    )
    item.variant_count = int(total.scalar() or 0)
    item.favorite_count = int(favorites.scalar() or 0)
    await db.flush()


async def list_variants(db: AsyncSession, ai_item_id: UUID) -> list[AdVariant]:
    r = await db.execute(
        select(AdVariant)
        .where(AdVariant.ai_item_id == ai_item_id)
        .order_by(AdVariant.display_order, AdVariant.created_at)
    )
    return list(r.scalars().all())


async def get_owned_variant(db: AsyncSession, variant_id: UUID, user_id: UUID) -> tuple[AdVariant, AiGeneratedItem]:
    """404 variant/item không tồn tại, 403 không phải owner của campaign."""
    variant = await db.get(AdVariant, variant_id)
    if variant is None:
        raise AppError(ErrorKind.NOT_FOUND, "Variant not found", f"No ad variant with id {variant_id}")
    item = await db.get(AiGeneratedItem, variant.ai_item_id)
    if item is None:
        raise AppError(ErrorKind.NOT_FOUND, "AI item not found", "The variant's parent item no longer exists")
    campaign = await db.get(Campaign, item.campaign_id)
    if campaign is None or campaign.user_id != user_id:
        raise AppError(ErrorKind.FORBIDDEN, "Access denied", "You do not own this variant")
    return variant, item


def _valid_variant_rows(data: dict[str, Any]) -> list[dict[str, Any]]:
    rows = [v for v in data.get("variants", []) if isinstance(v, dict) and _text(v.get("headline"))]
    if not rows:
        raise AppError(ErrorKind.INTERNAL, "Invalid AI response structure", "The AI response contains no usable variants")
    return rows


async def generate_variants(
    db: AsyncSession,
    item: AiGeneratedItem,
    campaign: Campaign,
    count: int,
    options: VariantOptions,
    llm: LLMService,
    settings: Settings,
) -> list[AdVariant]:
    """
    Sinh `count` variants theo ngôn ngữ của country đầu tiên trong campaign.
    display_order tiếp nối variants hiện có (bắt đầu từ 1).
    """
    language = language_for_countries(campaign.rss_countries)
    system, user = build_variant_prompt(
        _item_context(item), campaign_context(campaign), count, options.model_dump(), language
    )
    policy = LLMFailurePolicy.parse(settings.llm_failure_policy)
    try:
        result = await llm.complete_json(
            system, user, feature=FEATURE, temperature=VARIANT_TEMPERATURE, max_tokens=VARIANT_MAX_TOKENS
        )
        require_fields(result.data, {"variants": list})
    except LLMError as e:
        logger.warning("variants.llm_failed", item_id=str(item.id), error=e.error, details=e.details)
        return apply_failure_policy(policy, e, list, FEATURE)

    await log_llm_usage(db, settings, campaign.user_id, FEATURE, result)
    rows = _valid_variant_rows(result.data)[:count]
    r = await db.execute(select(func.max(AdVariant.display_order)).where(AdVariant.ai_item_id == item.id))
    start_order = int(r.scalar() or 0)

    variants = []
    for index, row in enumerate(rows):
        variants.append(
            AdVariant(
                ai_item_id=item.id,
                display_order=start_order + index + 1,
                variant_label=_text(row.get("variant_label")) or f"Variant {start_order + index + 1}",
                headline=_text(row.get("headline")),
                body=_text(row.get("body")),
                cta=_text(row.get("cta")),
                headline_en=_text(row.get("headline_en")),
                body_en=_text(row.get("body_en")),
                image_url=None,
                image_prompt=_text(row.get("image_prompt")),
                tone=_text(row.get("tone")) or DEFAULT_TONE,
                focus=_text(row.get("focus")) or DEFAULT_FOCUS,
                is_favorite=False,
            )
        )
    db.add_all(variants)
    await db.flush()
    await _refresh_counts(db, item)
    logger.info("variants.generated", item_id=str(item.id), count=len(variants), language=language)
    return variants


async def update_variant(db: AsyncSession, variant: AdVariant, item: AiGeneratedItem, payload: AdVariantPatchRequest) -> AdVariant:
    changes = payload.model_dump(exclude_unset=True)
    for key, value in changes.items():
        if key in ("headline", "is_favorite", "display_order", "tone", "focus") and value is None:
            continue
        setattr(variant, key, value)
    await db.flush()
    if "is_favorite" in changes:
        await _refresh_counts(db, item)
    logger.info("variants.updated", variant_id=str(variant.id), fields=sorted(changes))
    return variant


async def delete_variant(db: AsyncSession, variant: AdVariant, item: AiGeneratedItem) -> int:
    """
    Xóa variant; item chỉ còn 1 variant => 400 "Cannot delete the last variant".
    Trả về variant_count còn lại.
    """
    if item.variant_count <= 1:
        raise AppError(
            ErrorKind.VALIDATION,
            "Cannot delete the last variant",
            "An AI item must keep at least one ad variant",
        )
    variant_id = variant.id
    await db.delete(variant)
    await db.flush()
    await _refresh_counts(db, item)
    logger.info("variants.deleted", variant_id=str(variant_id), remaining=item.variant_count)
    return item.variant_count
