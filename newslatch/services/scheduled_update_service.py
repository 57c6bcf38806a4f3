"""
Scheduled update cho external cron: chọn campaign đầu tiên (cũ nhất) có get_updates của user,
check updates_hour với giờ UTC hiện tại (trừ khi force), chạy pipeline AI generate,
rồi gửi summary qua Telegram nếu profile có telegram_chat_id.
"""
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings
from newslatch.logging_config import get_logger
from newslatch.models import Campaign, UserProfile
from newslatch.schemas.scheduler import ScheduledUpdateResponse
from newslatch.services.ai_generate_service import generate_ai_content
from newslatch.services.image_extractor import ImageExtractor
from newslatch.services.llm_service import LLMService
from newslatch.services.telegram_service import TelegramNotifier, format_update_summary

logger = get_logger(__name__)


async def first_scheduled_campaign(db: AsyncSession, user_id: UUID) -> Optional[Campaign]:
    r = await db.execute(
        select(Campaign)
        .where(Campaign.user_id == user_id, Campaign.get_updates.is_(True))
        .order_by(Campaign.created_at.asc(), Campaign.id)
        .limit(1)
    )
    return r.scalar_one_or_none()


async def _notify(
    db: AsyncSession,
    notifier: TelegramNotifier,
    user_id: UUID,
    campaign: Campaign,
    ai_result: dict[str, Any],
) -> bool:
    """Gửi summary; lỗi chỉ được log, không làm fail scheduled update."""
    profile = await db.get(UserProfile, user_id)
    if profile is None or not profile.telegram_chat_id or not notifier.configured:
        return False
    headlines = [
        (str(item.get("clickbait") or item.get("headline") or ""), item.get("link"))
        for item in ai_result.get("saved_items", [])
    ]
    result = await notifier.send_message(profile.telegram_chat_id, format_update_summary(campaign.name, headlines))
    if not result.ok:
        logger.warning("scheduled_update.notify_failed", user_id=str(user_id), error=result.error)
    return result.ok


async def run_scheduled_update(
    db: AsyncSession,
    user_id: UUID,
    force_update: bool,
    *,
    client: httpx.AsyncClient,
    llm: LLMService,
    extractor: ImageExtractor,
    notifier: TelegramNotifier,
    settings: Settings,
    now: Optional[datetime] = None,
) -> ScheduledUpdateResponse:
    now = now or datetime.now(timezone.utc)
    current_hour = now.astimezone(timezone.utc).hour

    campaign = await first_scheduled_campaign(db, user_id)
    if campaign is None:
        logger.info("scheduled_update.no_campaign", user_id=str(user_id))
        return ScheduledUpdateResponse(
            processed=False,
            message="No campaigns with updates enabled",
            user_id=user_id,
            current_hour=current_hour,
            forced=force_update,
        )

    if not force_update and campaign.updates_hour != current_hour:
        logger.info(
            "scheduled_update.skipped",
            campaign_id=str(campaign.id),
            updates_hour=campaign.updates_hour,
            current_hour=current_hour,
        )
        return ScheduledUpdateResponse(
            processed=False,
            message="Not the scheduled time for updates",
            user_id=user_id,
            campaign_id=campaign.id,
            campaign_name=campaign.name,
            current_hour=current_hour,
            updates_hour=campaign.updates_hour,
            forced=False,
        )

    ai_result = await generate_ai_content(
        db,
        campaign.id,
        user_id=user_id,
        client=client,
        llm=llm,
        extractor=extractor,
        settings=settings,
        now=now,
    )
    notified = await _notify(db, notifier, user_id, campaign, ai_result)
    logger.info(
        "scheduled_update.completed",
        campaign_id=str(campaign.id),
        items=ai_result.get("items_generated", 0),
        forced=force_update,
        notified=notified,
    )
    return ScheduledUpdateResponse(
        processed=True,
        message="Scheduled update completed successfully",
        user_id=user_id,
        campaign_id=campaign.id,
        campaign_name=campaign.name,
        current_hour=current_hour,
        updates_hour=campaign.updates_hour,
        forced=force_update,
        notification_sent=notified,
        ai_result=ai_result,
    )
