"""
Image extractor: tìm ảnh đại diện cho từng tin.
1) ảnh RSS (nếu có) -> absolute URL -> HEAD validate;
2) fetch article HTML -> og:image -> twitter:image -> <meta name=image> -> <img> đầu tiên không phải icon/logo/sprite;
3) validate ứng viên bằng HEAD (2xx + Content-Type image/*).
Chạy theo batch qua BatchThrottle; lỗi từng item => extracted_image_url=None.
"""
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from newslatch.config import Settings
from newslatch.logging_config import get_logger
from newslatch.services.throttle import BatchThrottle

logger = get_logger(__name__)

ARTICLE_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0 Safari/537.36 NewsLatch Social Image Extractor 1.0"
)
VALIDATOR_USER_AGENT = "NewsLatch Image Validator 1.0"

SOURCE_RSS = "rss"
SOURCE_OG = "og:image"
SOURCE_TWITTER = "twitter:image"
SOURCE_META = "meta"
SOURCE_IMG = "img"

_META_SELECTORS = (
    (SOURCE_OG, 'meta[property="og:image"], meta[name="og:image"]'),
    (SOURCE_TWITTER, 'meta[name="twitter:image"], meta[property="twitter:image"]'),
    (SOURCE_META, 'meta[name="image"], meta[itemprop="image"]'),
)
_NON_CONTENT_IMAGE_MARKERS = ("icon", "logo", "sprite")


@dataclass
class ImageCandidate:
    headline: str
    link: str
    image_url: Optional[str] = None


@dataclass
class ImageExtractionResult:
    headline: str
    link: str
    image_url: Optional[str] = None
    extracted_image_url: Optional[str] = None
    source: Optional[str] = None


def make_absolute_url(candidate: str, page_url: str) -> str:
    """
    http(s) giữ nguyên; "//host/x" -> https:; "/x" -> scheme://host/x; "x" -> scheme://host/x.
    """
    candidate = (candidate or "").strip()
    if candidate.startswith(("http://", "https://")):
        return candidate
    if candidate.startswith("//"):
        return "https:" + candidate
    parsed = urlparse(page_url)
    origin = f"{parsed.scheme or 'https'}://{parsed.netloc}"
    if candidate.startswith("/"):
        return origin + candidate
    return f"{origin}/{candidate}"


def find_image_in_html(page_html: str, page_url: str) -> tuple[Optional[str], Optional[str]]:
    """(absolute image URL, source) theo thứ tự og:image, twitter:image, meta image, <img>."""
    soup = BeautifulSoup(page_html or "", "html.parser")
    for source, selector in _META_SELECTORS:
        tag = soup.select_one(selector)
        content = (tag.get("content") or "").strip() if tag else ""
        if content:
            return make_absolute_url(content, page_url), source
    for img in soup.find_all("img", src=True):
        src = (img.get("src") or "").strip()
        if not src or src.startswith("data:"):
            continue
        lowered = src.lower()
        if any(marker in lowered for marker in _NON_CONTENT_IMAGE_MARKERS):
            continue
        return make_absolute_url(src, page_url), SOURCE_IMG
    return None, None


class ImageExtractor:
    """Resolve ảnh cho danh sách tin; mọi HTTP đi qua client được inject."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: Settings,
        throttle: Optional[BatchThrottle] = None,
    ) -> None:
        self.client = client
        self.article_timeout = settings.article_fetch_timeout_seconds
        self.head_timeout = settings.image_head_timeout_seconds
        self.throttle = throttle or BatchThrottle.from_settings(settings)

    async def validate_image_url(self, url: str) -> bool:
        """HEAD: 2xx và Content-Type bắt đầu bằng image/."""
        try:
            resp = await self.client.head(
                url,
                headers={"User-Agent": VALIDATOR_USER_AGENT},
                timeout=self.head_timeout,
                follow_redirects=True,
            )
        except httpx.HTTPError as e:
            logger.info("image.validate_failed", url=url, error=str(e) or type(e).__name__)
            return False
        content_type = resp.headers.get("content-type", "").lower()
        return resp.is_success and content_type.startswith("image/")

    async def fetch_article_html(self, url: str) -> Optional[str]:
        try:
            resp = await self.client.get(
                url,
                headers={
                    "User-Agent": ARTICLE_USER_AGENT,
                    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                },
                timeout=self.article_timeout,
                follow_redirects=True,
            )
        except httpx.HTTPError as e:
            logger.info("image.article_fetch_failed", url=url, error=str(e) or type(e).__name__)
            return None
        if not resp.is_success:
            logger.info("image.article_fetch_http_error", url=url, status=resp.status_code)
            return None
        return resp.text

    async def extract_for_item(self, item: ImageCandidate) -> ImageExtractionResult:
        result = ImageExtractionResult(headline=item.headline, link=item.link, image_url=item.image_url)
        if item.image_url:
            rss_url = make_absolute_url(item.image_url, item.link) if item.link else item.image_url
            if await self.validate_image_url(rss_url):
                result.extracted_image_url = rss_url
                result.source = SOURCE_RSS
                return result
        if not item.link:
            return result
        page_html = await self.fetch_article_html(item.link)
        if not page_html:
            return result
        candidate, source = find_image_in_html(page_html, item.link)
        if candidate and await self.validate_image_url(candidate):
            result.extracted_image_url = candidate
            result.source = source
        return result

    async def extract_images(self, items: list[ImageCandidate]) -> list[ImageExtractionResult]:
        """Chạy extract_for_item qua throttle; exception của item => kết quả không có ảnh."""
        outcomes = await self.throttle.run(items, self.extract_for_item)
        results: list[ImageExtractionResult] = []
        for item, outcome in zip(items, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("image.extract_failed", link=item.link, error=str(outcome))
                results.append(ImageExtractionResult(headline=item.headline, link=item.link, image_url=item.image_url))
            else:
                results.append(outcome)
        found = sum(1 for r in results if r.extracted_image_url)
        logger.info("image.extract_done", items=len(items), found=found)
        return results
