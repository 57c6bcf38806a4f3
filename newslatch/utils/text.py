"""Làm sạch text từ HTML/XML (feed item, article page)."""
import html
import re

from bs4 import BeautifulSoup

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)

DEFAULT_MAX_LENGTH = 500


def clean_text(text: str | None, max_length: int | None = DEFAULT_MAX_LENGTH) -> str:
    """
    Strip tags, unescape entities, collapse whitespace, truncate.
    Truncated text = max_length chars + "...". max_length=None: không cắt.
    """
    if not text:
        return ""
    cleaned = _CDATA_RE.sub(r"\1", str(text))
    cleaned = _TAG_RE.sub("", cleaned)
    cleaned = html.unescape(cleaned).replace("\xa0", " ")
    cleaned = _WS_RE.sub(" ", cleaned).strip()
    if max_length is not None and len(cleaned) > max_length:
        cleaned = cleaned[:max_length] + "..."
    return cleaned


def visible_page_text(page_html: str, max_length: int) -> str:
    """Visible text của trang HTML (bỏ script/style/noscript), cắt max_length ký tự."""
    soup = BeautifulSoup(page_html or "", "html.parser")
    for node in soup(["script", "style", "noscript", "template"]):
        node.decompose()
    text = _WS_RE.sub(" ", soup.get_text(" ", strip=True)).strip()
    return text[:max_length]
