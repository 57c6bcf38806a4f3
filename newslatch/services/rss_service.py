"""
RSS filter/aggregator cho một campaign.
Feed match khi categories giao với campaign.rss_categories; fetch song song,
feed lỗi chỉ bị đếm (feeds_failed), không làm hỏng cả batch.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings
from newslatch.errors import AppError, ErrorKind
from newslatch.logging_config import get_logger
from newslatch.models import Campaign, RssFeed
from newslatch.services.rss_parser import FeedParseResult, RssItem, fetch_feed

logger = get_logger(__name__)


@dataclass
class LatestRssContent:
    campaign_id: UUID
    rss_categories: list[str]
    rss_countries: list[str]
    items: list[RssItem] = field(default_factory=list)
    feeds_processed: int = 0
    feeds_failed: int = 0
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "message": self.message,
            "items": [item.to_dict() for item in self.items],
            "count": len(self.items),
            "campaign": {
                "id": str(self.campaign_id),
                "rss_categories": self.rss_categories,
                "rss_countries": self.rss_countries,
                "feeds_processed": self.feeds_processed,
                "feeds_failed": self.feeds_failed,
            },
        }


async def get_campaign_or_404(db: AsyncSession, campaign_id: UUID) -> Campaign:
    campaign = await db.get(Campaign, campaign_id)
    if campaign is None:
        raise AppError(ErrorKind.NOT_FOUND, "Campaign not found", f"No campaign with id {campaign_id}")
    return campaign


def feed_matches(feed: RssFeed, categories: list[str]) -> bool:
    """Overlap giữa feed.categories và categories của campaign (so khớp không phân biệt hoa thường)."""
    wanted = {c.strip().lower() for c in categories if c and c.strip()}
    return bool(wanted & {c.strip().lower() for c in (feed.categories or []) if c})


async def get_filtered_rss_feeds(db: AsyncSession, campaign: Campaign) -> list[RssFeed]:
    """
    Active feeds có category giao với campaign, order by name.
    Lọc overlap ở Python: catalog nhỏ, và JSON list không portable giữa Postgres/SQLite.
    """
    categories = list(campaign.rss_categories or [])
    if not categories:
        return []
    result = await db.execute(select(RssFeed).where(RssFeed.is_active.is_(True)).order_by(RssFeed.name))
    return [feed for feed in result.scalars().all() if feed_matches(feed, categories)]


def merge_feed_results(results: list[FeedParseResult], max_items: int) -> list[RssItem]:
    """Gộp item của các feed thành công, giữ item có instant hợp lệ, sort mới nhất trước, cap max_items."""
    merged: list[RssItem] = []
    for result in results:
        if result.success:
            merged.extend(item for item in result.items if isinstance(item.published_at, datetime))
    merged.sort(key=lambda item: item.published_at, reverse=True)
    return merged[:max_items]


async def get_latest_rss_content(
    db: AsyncSession,
    client: httpx.AsyncClient,
    campaign_id: UUID,
    settings: Settings,
    now: Optional[datetime] = None,
) -> LatestRssContent:
    """Fan-out fetch tất cả feed match; 0 feed hoặc 0 item => kết quả rỗng kèm message (không raise)."""
    campaign = await get_campaign_or_404(db, campaign_id)
    content = LatestRssContent(
        campaign_id=campaign.id,
        rss_categories=list(campaign.rss_categories or []),
        rss_countries=list(campaign.rss_countries or []),
    )
    if not content.rss_categories:
        content.message = "No RSS categories configured for this campaign"
        return content

    feeds = await get_filtered_rss_feeds(db, campaign)
    if not feeds:
        content.message = "No active RSS feeds match the campaign categories"
        logger.info("rss.no_matching_feeds", campaign_id=str(campaign.id), categories=content.rss_categories)
        return content

    outcomes = await asyncio.gather(
        *(fetch_feed(client, feed.url, feed.name, settings, now=now) for feed in feeds),
        return_exceptions=True,
    )
    results: list[FeedParseResult] = []
    for feed, outcome in zip(feeds, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning("rss.feed_failed", feed_id=str(feed.id), feed=feed.name, error=str(outcome))
            content.feeds_failed += 1
            continue
        if not outcome.success or not outcome.items:
            if not outcome.success:
                logger.warning("rss.feed_failed", feed_id=str(feed.id), feed=feed.name, error=outcome.error)
            content.feeds_failed += 1
            continue
        content.feeds_processed += 1
        results.append(outcome)

    content.items = merge_feed_results(results, settings.rss_max_merged_items)
    content.message = (
        f"Found {len(content.items)} recent items from {content.feeds_processed} feeds"
        if content.items
        else "No recent RSS items found for this campaign"
    )
    logger.info(
        "rss.aggregate_done",
        campaign_id=str(campaign.id),
        feeds=len(feeds),
        feeds_processed=content.feeds_processed,
        feeds_failed=content.feeds_failed,
        items=len(content.items),
    )
    return content
