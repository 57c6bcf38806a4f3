"""
RSS/Atom parser: feed text -> list RssItem đã chuẩn hóa.
feedparser lo phần XML; các quy tắc trích xuất (title fallback, mô tả tổng hợp,
ảnh, lọc theo tuổi, cap mỗi feed) nằm ở module này.
"""
import calendar
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional
from urllib.parse import unquote, urlparse

import feedparser
import httpx

from newslatch.config import Settings
from newslatch.logging_config import get_logger
from newslatch.utils.text import clean_text

logger = get_logger(__name__)

USER_AGENT = "NewsLatch RSS Reader 1.0"
ACCEPT = "application/rss+xml, application/xml, text/xml, */*"
UNTITLED_ARTICLE = "Untitled Article"

UNDATED_DROP = "drop"
UNDATED_NOW = "now"

# feedparser map pubDate -> published, dc:date/atom:updated -> updated.
_DATE_KEYS = ("published", "updated", "created")
_ALT_TITLE_KEYS = ("media_title", "dc_title", "itunes_title")
_FILE_EXT_RE = re.compile(r"\.[A-Za-z0-9]{1,5}$")
_SLUG_SEP_RE = re.compile(r"[-_]+")
# Lệch đồng hồ cho phép với pubDate ở tương lai.
FUTURE_SKEW = timedelta(minutes=5)


@dataclass
class ParseOptions:
    """Giới hạn khi parse một feed."""

    max_items: int = 10
    max_age_hours: int = 24
    undated_policy: str = UNDATED_DROP

    @classmethod
    def from_settings(cls, settings: Settings) -> "ParseOptions":
        return cls(
            max_items=settings.rss_max_items_per_feed,
            max_age_hours=settings.rss_max_age_hours,
            undated_policy=settings.rss_undated_item_policy,
        )


@dataclass
class RssItem:
    """Một tin đã chuẩn hóa. Không lưu DB; chỉ sống trong một lần generate."""

    title: str
    link: str
    description: str
    pub_date: str
    pub_date_iso: str
    published_at: datetime
    source: str
    categories: list[str] = field(default_factory=list)
    guid: str = ""
    author: str = ""
    content: str = ""
    image_url: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "link": self.link,
            "description": self.description,
            "pub_date": self.pub_date,
            "pub_date_iso": self.pub_date_iso,
            "source": self.source,
            "categories": list(self.categories),
            "guid": self.guid,
            "author": self.author,
            "content": self.content,
            "image_url": self.image_url,
        }


@dataclass
class FeedParseResult:
    success: bool
    source: str
    items: list[RssItem] = field(default_factory=list)
    error: Optional[str] = None


def title_from_url(url: str) -> str:
    """
    Title từ segment cuối của URL: bỏ extension, '-'/'_' -> space, Title Case.
    "https://x.com/news/big-ai-launch.html" -> "Big Ai Launch". Không có segment => "".
    """
    if not url:
        return ""
    path = urlparse(url).path if "://" in url else url
    segments = [s for s in path.split("/") if s.strip()]
    if not segments:
        return ""
    slug = _FILE_EXT_RE.sub("", unquote(segments[-1]))
    words = _SLUG_SEP_RE.sub(" ", slug).split()
    return " ".join(w.capitalize() for w in words)


def _parse_entry_date(entry: Any) -> tuple[Optional[datetime], str]:
    """(instant UTC hoặc None, raw string). Raw có mà không parse được => (None, raw)."""
    raw = ""
    for key in _DATE_KEYS:
        value = entry.get(key)
        if not value:
            continue
        raw = raw or str(value)
        parsed = entry.get(f"{key}_parsed")
        if parsed:
            try:
                return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc), str(value)
            except (OverflowError, ValueError):
                pass
        try:
            dt = parsedate_to_datetime(str(value))
        except (TypeError, ValueError):
            try:
                dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
            except ValueError:
                continue
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc), str(value)
    return None, raw


def _entry_link(entry: Any) -> str:
    link = (entry.get("link") or "").strip()
    if link:
        return link
    for candidate in entry.get("links") or []:
        href = (candidate.get("href") or "").strip()
        if href and candidate.get("rel", "alternate") == "alternate":
            return href
    return ""


def _entry_image(entry: Any) -> Optional[str]:
    """Enclosure có MIME image/* trước, rồi media:content, rồi media:thumbnail."""
    for enclosure in entry.get("enclosures") or []:
        href = (enclosure.get("href") or enclosure.get("url") or "").strip()
        if href and (enclosure.get("type") or "").lower().startswith("image/"):
            return href
    for media in entry.get("media_content") or []:
        url = (media.get("url") or "").strip()
        if url:
            return url
    for thumb in entry.get("media_thumbnail") or []:
        url = (thumb.get("url") or "").strip()
        if url:
            return url
    return None


def _entry_categories(entry: Any) -> list[str]:
    out = []
    for tag in entry.get("tags") or []:
        term = clean_text(tag.get("term") or tag.get("label") or "")
        if term:
            out.append(term)
    return out


def _build_item(entry: Any, source: str, published_at: datetime, raw_date: str) -> RssItem:
    link = _entry_link(entry)
    guid = (entry.get("id") or "").strip()
    raw_title = entry.get("title") or ""
    content_values = [c.get("value", "") for c in entry.get("content") or []]
    content = clean_text(content_values[0] if content_values else "")

    title = clean_text(raw_title)
    if not title:
        title = next((clean_text(entry.get(k)) for k in _ALT_TITLE_KEYS if clean_text(entry.get(k))), "")
    if not title:
        title = title_from_url(link) or title_from_url(guid)
    if not title:
        title = UNTITLED_ARTICLE

    description = ""
    for candidate in (entry.get("summary"), content, entry.get("media_description"), entry.get("subtitle")):
        description = clean_text(candidate)
        if description:
            break
    if not description and title:
        description = f"Article: {title}"

    image_url = _entry_image(entry)
    return RssItem(
        title=title,
        link=link,
        description=description,
        pub_date=raw_date,
        pub_date_iso=published_at.isoformat().replace("+00:00", "Z"),
        published_at=published_at,
        source=source,
        categories=_entry_categories(entry),
        guid=guid,
        author=clean_text(entry.get("author") or ""),
        content=content,
        image_url=image_url.strip() if image_url else None,
    )


def parse_feed(
    text: str | bytes,
    source: str,
    options: Optional[ParseOptions] = None,
    now: Optional[datetime] = None,
) -> FeedParseResult:
    """
    Parse RSS 2.0 / Atom. Giữ item khi có nội dung (title/description/content/link) và
    publish time trong max_age_hours trước `now` (tương lai quá FUTURE_SKEW bị bỏ); dừng sau max_items item được giữ.
    Ngày thiếu/không parse được: options.undated_policy ("drop" | "now").
    """
    options = options or ParseOptions()
    now = now or datetime.now(timezone.utc)
    max_age = timedelta(hours=options.max_age_hours)

    parsed = feedparser.parse(text)
    if not parsed.entries and (parsed.bozo or not parsed.version):
        error = str(getattr(parsed, "bozo_exception", "")) or "not an RSS/Atom document"
        logger.warning("rss.parse_failed", source=source, error=error)
        return FeedParseResult(success=False, source=source, error=f"Invalid feed: {error}")

    items: list[RssItem] = []
    for entry in parsed.entries:
        if len(items) >= options.max_items:
            break
        has_content = bool(
            (entry.get("title") or "").strip()
            or (entry.get("summary") or "").strip()
            or entry.get("content")
            or _entry_link(entry)
        )
        if not has_content:
            logger.info("rss.item_dropped", source=source, reason="empty")
            continue

        published_at, raw_date = _parse_entry_date(entry)
        if published_at is None:
            if options.undated_policy != UNDATED_NOW:
                logger.info("rss.item_dropped", source=source, reason="unparsable_date", raw_date=raw_date)
                continue
            published_at = now
        if published_at > now + FUTURE_SKEW:
            logger.info(
                "rss.item_dropped",
                source=source,
                reason="future_date",
                published_at=published_at.isoformat(),
            )
            continue
        if now - published_at > max_age:
            logger.info(
                "rss.item_dropped",
                source=source,
                reason="too_old",
                published_at=published_at.isoformat(),
            )
            continue

        items.append(_build_item(entry, source, published_at, raw_date))

    logger.info("rss.feed_parsed", source=source, entries=len(parsed.entries), kept=len(items))
    return FeedParseResult(success=True, source=source, items=items)


async def fetch_feed(
    client: httpx.AsyncClient,
    url: str,
    source: str,
    settings: Settings,
    now: Optional[datetime] = None,
) -> FeedParseResult:
    """GET feed URL (timeout RSS_FETCH_TIMEOUT_SECONDS) rồi parse. Lỗi mạng/non-2xx => success=False."""
    try:
        resp = await client.get(
            url,
            headers={"User-Agent": USER_AGENT, "Accept": ACCEPT},
            timeout=settings.rss_fetch_timeout_seconds,
            follow_redirects=True,
        )
    except httpx.HTTPError as e:
        logger.warning("rss.fetch_failed", source=source, url=url, error=str(e) or type(e).__name__)
        return FeedParseResult(success=False, source=source, error=f"Fetch failed: {e or type(e).__name__}")
    if not resp.is_success:
        logger.warning("rss.fetch_http_error", source=source, url=url, status=resp.status_code)
        return FeedParseResult(
            success=False,
            source=source,
            error=f"HTTP {resp.status_code}: {resp.reason_phrase}",
        )
    return parse_feed(resp.content, source, ParseOptions.from_settings(settings), now=now)
