"""Admin CRUD cho catalog rss_feeds."""
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.errors import AppError, ErrorKind
from newslatch.logging_config import get_logger
from newslatch.models import RssFeed
from newslatch.schemas.rss_feeds import RssFeedCreate, RssFeedUpdate

logger = get_logger(__name__)


def _codes(values: Optional[list[str]], upper: bool = False) -> list[str]:
    out: list[str] = []
    for value in values or []:
        code = str(value).strip()
        code = code.upper() if upper else code.lower()
        if code and code not in out:
            out.append(code)
    return out


def parse_feed_id(raw: Optional[str]) -> UUID:
    """?id= bắt buộc cho PUT/DELETE: thiếu hoặc sai format => 400."""
    if not raw:
        raise AppError(ErrorKind.VALIDATION, "Missing feed ID", "Provide the feed id as ?id=")
    try:
        return UUID(raw)
    except ValueError:
        raise AppError(ErrorKind.VALIDATION, "Invalid feed ID", f"'{raw}' is not a valid id") from None


async def list_feeds(db: AsyncSession) -> list[RssFeed]:
    r = await db.execute(select(RssFeed).order_by(RssFeed.created_at.desc(), RssFeed.name))
    return list(r.scalars().all())


async def get_feed_or_404(db: AsyncSession, feed_id: UUID) -> RssFeed:
    feed = await db.get(RssFeed, feed_id)
    if feed is None:
        raise AppError(ErrorKind.NOT_FOUND, "Feed not found", f"No RSS feed with id {feed_id}")
    return feed


async def create_feed(db: AsyncSession, payload: RssFeedCreate) -> RssFeed:
    name = (payload.name or "").strip()
    url = (payload.url or "").strip()
    if not name or not url:
        raise AppError(ErrorKind.VALIDATION, "Missing required fields", "name and url are required")
    feed = RssFeed(
        name=name,
        url=url,
        categories=_codes(payload.categories),
        countries=_codes(payload.countries, upper=True),
        is_active=payload.is_active,
    )
    db.add(feed)
    await db.flush()
    logger.info("rss_feed.created", feed_id=str(feed.id), url=url)
    return feed


async def update_feed(db: AsyncSession, feed: RssFeed, payload: RssFeedUpdate) -> RssFeed:
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        if not changes["name"].strip():
            raise AppError(ErrorKind.VALIDATION, "Invalid name", "name cannot be empty")
        feed.name = changes["name"].strip()
    if changes.get("url") is not None:
        if not changes["url"].strip():
            raise AppError(ErrorKind.VALIDATION, "Invalid url", "url cannot be empty")
        feed.url = changes["url"].strip()
    if "categories" in changes:
        feed.categories = _codes(changes["categories"])
    if "countries" in changes:
        feed.countries = _codes(changes["countries"], upper=True)
    if changes.get("is_active") is not None:
        feed.is_active = changes["is_active"]
    await db.flush()
    logger.info("rss_feed.updated", feed_id=str(feed.id), fields=sorted(changes))
    return feed


async def delete_feed(db: AsyncSession, feed: RssFeed) -> None:
    feed_id = feed.id
    await db.delete(feed)
    await db.flush()
    logger.info("rss_feed.deleted", feed_id=str(feed_id))
