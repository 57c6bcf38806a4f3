"""AI content browsing: list có filter + phân trang, patch (publish/ảnh/ad copy), delete."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.logging_config import get_logger
from newslatch.models import AiGeneratedItem
from newslatch.schemas.ai_content import AiItemOut, AiItemPatchRequest

logger = get_logger(__name__)

STATUS_CHOICES = ("all", "published", "unpublished")
SCORE_CHOICES = ("all", "high", "medium", "low")
DATE_CHOICES = ("all", "today", "week", "month")
SORT_CHOICES = ("created_at", "relevance_score", "trend")
ORDER_CHOICES = ("desc", "asc")

HIGH_SCORE_MIN = 80
MEDIUM_SCORE_MIN = 50


@dataclass
class AiContentFilters:
    status: str = "all"
    score_range: str = "all"
    date_range: str = "all"
    sort_by: str = "created_at"
    sort_order: str = "desc"

    def to_dict(self) -> dict[str, str]:
        return {
            "status": self.status,
            "scoreRange": self.score_range,
            "dateRange": self.date_range,
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order,
        }


def _date_floor(date_range: str, now: datetime) -> Optional[datetime]:
    if date_range == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if date_range == "week":
        return now - timedelta(days=7)
    if date_range == "month":
        return now - timedelta(days=30)
    return None


def _apply_filters(query: Any, filters: AiContentFilters, now: datetime) -> Any:
    if filters.status == "published":
        query = query.where(AiGeneratedItem.is_published.is_(True))
    elif filters.status == "unpublished":
        query = query.where(AiGeneratedItem.is_published.is_(False))

    if filters.score_range == "high":
        query = query.where(AiGeneratedItem.relevance_score >= HIGH_SCORE_MIN)
    elif filters.score_range == "medium":
        query = query.where(
            AiGeneratedItem.relevance_score >= MEDIUM_SCORE_MIN,
            AiGeneratedItem.relevance_score < HIGH_SCORE_MIN,
        )
    elif filters.score_range == "low":
        query = query.where(AiGeneratedItem.relevance_score < MEDIUM_SCORE_MIN)

    floor = _date_floor(filters.date_range, now)
    if floor is not None:
        query = query.where(AiGeneratedItem.created_at >= floor)
    return query


async def list_ai_content(
    db: AsyncSession,
    campaign_id: UUID,
    filters: AiContentFilters,
    page: int = 1,
    limit: int = 10,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Trang `page` (1-based) của ai items theo filter; kèm total để frontend phân trang."""
    now = now or datetime.now(timezone.utc)
    base = _apply_filters(
        select(AiGeneratedItem).where(AiGeneratedItem.campaign_id == campaign_id), filters, now
    )
    total_q = select(func.count()).select_from(base.subquery())
    total = int((await db.execute(total_q)).scalar() or 0)

    sort_col = getattr(AiGeneratedItem, filters.sort_by)
    ordering = sort_col.asc() if filters.sort_order == "asc" else sort_col.desc()
    q = base.order_by(ordering, AiGeneratedItem.id).offset((page - 1) * limit).limit(limit)
    items = list((await db.execute(q)).scalars().all())
    return {
        "success": True,
        "ai_items": [AiItemOut.model_validate(it).model_dump(mode="json") for it in items],
        "count": len(items),
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": (total + limit - 1) // limit if total else 0,
        "campaign_id": str(campaign_id),
        "filters": filters.to_dict(),
    }


async def update_ai_item(db: AsyncSession, item: AiGeneratedItem, payload: AiItemPatchRequest) -> AiGeneratedItem:
    changes = payload.model_dump(exclude_unset=True)
    if "is_published" in changes and changes["is_published"] is not None:
        item.is_published = bool(changes["is_published"])
    if "image_url" in changes:
        item.image_url = changes["image_url"]
    if "image_prompt" in changes:
        item.image_prompt = changes["image_prompt"]
    if payload.ad_placement is not None:
        item.ad_placement = payload.ad_placement.model_dump(exclude_none=True)
    await db.flush()
    logger.info("ai_content.updated", item_id=str(item.id), fields=sorted(changes))
    return item


async def delete_ai_item(db: AsyncSession, item: AiGeneratedItem) -> None:
    """Xóa item; cascade variants + landing page."""
    item_id = item.id
    await db.delete(item)
    await db.flush()
    logger.info("ai_content.deleted", item_id=str(item_id))
