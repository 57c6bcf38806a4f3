"""
Telegram Bot API client (sendMessage, MarkdownV2).
Message dài hơn MAX_MESSAGE_LENGTH được chia trang, ưu tiên cắt ở newline/space.
"""
import re
from dataclasses import dataclass
from typing import Optional

import httpx

from newslatch.config import Settings
from newslatch.logging_config import get_logger

logger = get_logger(__name__)

MAX_MESSAGE_LENGTH = 3900
_MARKDOWN_V2_SPECIAL = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")


def escape_markdown_v2(text: str) -> str:
    """Escape ký tự đặc biệt MarkdownV2 (https://core.telegram.org/bots/api#markdownv2-style)."""
    return _MARKDOWN_V2_SPECIAL.sub(r"\\\1", text or "")


def split_message(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """Chia text thành các trang <= max_length; cắt ở newline/space nếu nằm trong 20% cuối."""
    chunks: list[str] = []
    remaining = text
    while len(remaining) > max_length:
        split_at = max_length
        last_newline = remaining.rfind("\n", 0, max_length)
        last_space = remaining.rfind(" ", 0, max_length)
        if last_newline > max_length * 0.8:
            split_at = last_newline + 1
        elif last_space > max_length * 0.8:
            split_at = last_space + 1
        # không cắt ngay sau backslash escape
        while split_at > 1 and remaining[split_at - 1] == "\\":
            split_at -= 1
        chunks.append(remaining[:split_at])
        remaining = remaining[split_at:]
    if remaining:
        chunks.append(remaining)
    return chunks


@dataclass
class TelegramSendResult:
    ok: bool
    messages_sent: int = 0
    error: Optional[str] = None


class TelegramNotifier:
    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self.client = client
        self.token = settings.telegram_bot_token
        self.base_url = settings.telegram_api_base_url.rstrip("/")
        self.timeout = settings.telegram_timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self.token)

    async def send_message(self, chat_id: str, text: str) -> TelegramSendResult:
        """
        Gửi text (đã escape MarkdownV2) tới chat_id, chia trang nếu cần.
        Không raise: lỗi được log và trả về ok=False.
        """
        if not self.token:
            return TelegramSendResult(ok=False, error="TELEGRAM_BOT_TOKEN is not configured")
        url = f"{self.base_url}/bot{self.token}/sendMessage"
        sent = 0
        for chunk in split_message(text):
            payload = {
                "chat_id": chat_id,
                "text": chunk,
                "parse_mode": "MarkdownV2",
                "disable_web_page_preview": True,
            }
            try:
                resp = await self.client.post(url, json=payload, timeout=self.timeout)
            except httpx.HTTPError as e:
                logger.warning("telegram.send_failed", chat_id=chat_id, error=str(e))
                return TelegramSendResult(ok=False, messages_sent=sent, error=str(e))
            if resp.status_code >= 400:
                logger.warning("telegram.send_failed", chat_id=chat_id, status=resp.status_code, body=resp.text[:500])
                return TelegramSendResult(ok=False, messages_sent=sent, error=f"HTTP {resp.status_code}")
            sent += 1
        logger.info("telegram.sent", chat_id=chat_id, messages=sent)
        return TelegramSendResult(ok=True, messages_sent=sent)


def format_update_summary(campaign_name: str, headlines: list[tuple[str, Optional[str]]]) -> str:
    """MarkdownV2 summary: tiêu đề campaign + danh sách headline (kèm link nếu có)."""
    lines = [f"*{escape_markdown_v2(f'New AI content for {campaign_name}')}*", ""]
    for index, (headline, link) in enumerate(headlines, start=1):
        line = f"{index}\\. {escape_markdown_v2(headline)}"
        if link:
            line += f"\n{escape_markdown_v2(link)}"
        lines.append(line)
    if not headlines:
        lines.append(escape_markdown_v2("No new items this time."))
    return "\n".join(lines)
