"""
Telegram notifications.
- escape_markdown_v2 escape đủ ký tự đặc biệt.
- split_message: trang <= 3900 ký tự, ưu tiên newline/space, không cắt ngay sau backslash.
- TelegramNotifier: chưa cấu hình token => ok=False, HTTP lỗi => ok=False (không raise).
"""
import json

import httpx
import pytest

from newslatch.config import get_settings
from newslatch.services.telegram_service import (
    MAX_MESSAGE_LENGTH,
    TelegramNotifier,
    escape_markdown_v2,
    format_update_summary,
    split_message,
)


def test_escape_markdown_v2() -> None:
    assert escape_markdown_v2("Hello_world. (v2) #1!") == "Hello\\_world\\. \\(v2\\) \\#1\\!"
    assert escape_markdown_v2("") == ""


def test_split_message_short_text_single_page() -> None:
    assert split_message("short message") == ["short message"]


def test_split_message_prefers_newline_near_the_end() -> None:
    first_line = "a" * 3500
    text = first_line + "\n" + "b" * 1000
    pages = split_message(text)
    assert pages == [first_line + "\n", "b" * 1000]


def test_split_message_hard_split_without_whitespace() -> None:
    pages = split_message("x" * 10000)
    assert [len(p) for p in pages] == [MAX_MESSAGE_LENGTH, MAX_MESSAGE_LENGTH, 10000 - 2 * MAX_MESSAGE_LENGTH]
    assert "".join(pages) == "x" * 10000


def test_split_message_never_ends_page_on_backslash() -> None:
    text = "y" * (MAX_MESSAGE_LENGTH - 1) + "\\." + "z" * 100
    pages = split_message(text)
    assert not pages[0].endswith("\\")
    assert pages[1].startswith("\\.")
    assert "".join(pages) == text


def test_format_update_summary() -> None:
    summary = format_update_summary("Acme", [("Big news!", "https://news.test/a")])
    assert summary.startswith("*New AI content for Acme*")
    assert "1\\. Big news\\!" in summary
    assert "https://news\\.test/a" in summary


@pytest.mark.asyncio
async def test_notifier_not_configured() -> None:
    settings = get_settings().model_copy(update={"telegram_bot_token": None})
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))) as client:
        notifier = TelegramNotifier(client, settings)
        result = await notifier.send_message("42", "hi")
    assert notifier.configured is False
    assert result.ok is False


@pytest.mark.asyncio
async def test_notifier_sends_each_page() -> None:
    sent: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == "https://tg.test/bot123:abc/sendMessage"
        sent.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True})

    settings = get_settings().model_copy(
        update={"telegram_bot_token": "123:abc", "telegram_api_base_url": "https://tg.test"}
    )
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        result = await TelegramNotifier(client, settings).send_message("42", "w " * 3000)

    assert result.ok is True
    assert result.messages_sent == 2
    assert all(p["chat_id"] == "42" and p["parse_mode"] == "MarkdownV2" for p in sent)


@pytest.mark.asyncio
async def test_notifier_http_error_is_reported() -> None:
    settings = get_settings().model_copy(
        update={"telegram_bot_token": "123:abc", "telegram_api_base_url": "https://tg.test"}
    )
    transport = httpx.MockTransport(lambda r: httpx.Response(400, json={"ok": False, "description": "chat not found"}))
    async with httpx.AsyncClient(transport=transport) as client:
        result = await TelegramNotifier(client, settings).send_message("42", "hello")
    assert result.ok is False
    assert result.error == "HTTP 400"
