"""
GET /scheduled-updates (external cron).
- x-api-key: thiếu 401, sai 403; user_id thiếu 400.
- Không có campaign get_updates => processed=False.
- Chưa tới giờ (không force) => bỏ qua, không gọi LLM.
- force_update=true => chạy pipeline và gửi summary qua Telegram khi có chat id.
"""
import json
import uuid
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from conftest import SCHEDULER_KEY, llm_result, rss_xml
from newslatch.config import get_settings
from newslatch.main import app

FEED_URL = "https://feeds.test/tech.xml"
KEY = {"x-api-key": SCHEDULER_KEY}


@pytest.mark.asyncio
async def test_scheduler_auth(api, seed) -> None:
    profile = await seed.profile()
    params = {"user_id": str(profile.id)}

    missing = await api.get("/scheduled-updates", params=params)
    assert missing.status_code == 401
    assert missing.json()["error"] == "Missing API key"

    wrong = await api.get("/scheduled-updates", params=params, headers={"x-api-key": "nope"})
    assert wrong.status_code == 403
    assert wrong.json()["error"] == "Invalid API key"

    no_user = await api.get("/scheduled-updates", headers=KEY)
    assert no_user.status_code == 400
    assert no_user.json()["error"] == "Missing user_id"


@pytest.mark.asyncio
async def test_no_scheduled_campaigns(api, seed) -> None:
    profile = await seed.profile()
    await seed.campaign(profile.id, get_updates=False)
    resp = await api.get("/scheduled-updates", params={"user_id": str(profile.id)}, headers=KEY)
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["processed"] is False
    assert data["message"] == "No campaigns with updates enabled"
    assert 0 <= data["current_hour"] <= 23


@pytest.mark.asyncio
async def test_skips_when_not_scheduled_hour(api, seed, fake_llm) -> None:
    profile = await seed.profile()
    await seed.campaign(profile.id, get_updates=True, updates_hour=None)
    resp = await api.get(
        "/scheduled-updates", params={"user_id": str(profile.id), "force_update": "false"}, headers=KEY
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["processed"] is False
    assert data["message"] == "Not the scheduled time for updates"
    fake_llm.complete_json.assert_not_called()


@pytest.mark.asyncio
async def test_forced_update_runs_pipeline_and_notifies(api, seed, web, fake_llm) -> None:
    now = datetime.now(timezone.utc)
    profile = await seed.profile(credits=2, telegram_chat_id="4242")
    first = await seed.campaign(
        profile.id, name="Oldest", get_updates=True, updates_hour=None, created_at=now - timedelta(days=3)
    )
    await seed.campaign(profile.id, name="Newer", get_updates=True, updates_hour=None, created_at=now - timedelta(days=1))
    await seed.feed("Tech Daily", FEED_URL, ["tech"])
    web.add("GET", FEED_URL, httpx.Response(200, text=rss_xml([
        {"title": "Chip launch", "link": "https://news.test/chip", "published": now - timedelta(hours=1)},
    ])))
    web.add("POST", "https://tg.test/bot123:abc/sendMessage", httpx.Response(200, json={"ok": True}))
    fake_llm.complete_json.return_value = llm_result({
        "results": [{"headline": "Chip launch", "clickbait": "Chips go brrr", "link": "https://news.test/chip"}]
    })
    app.dependency_overrides[get_settings] = lambda: get_settings().model_copy(
        update={"telegram_bot_token": "123:abc", "telegram_api_base_url": "https://tg.test"}
    )

    resp = await api.get(
        "/scheduled-updates", params={"user_id": str(profile.id), "force_update": "true"}, headers=KEY
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["processed"] is True
    assert data["forced"] is True
    assert data["campaign_id"] == str(first.id)
    assert data["message"] == "Scheduled update completed successfully"
    assert data["ai_result"]["items_generated"] == 1
    assert data["notification_sent"] is True

    sent = web.requests_to("https://tg.test/")
    assert len(sent) == 1
    payload = json.loads(sent[0].content)
    assert payload["chat_id"] == "4242"
    assert "Chips go brrr" in payload["text"]


@pytest.mark.asyncio
async def test_forced_update_without_telegram_still_succeeds(api, seed, web, fake_llm) -> None:
    now = datetime.now(timezone.utc)
    profile = await seed.profile(credits=1)
    await seed.campaign(profile.id, get_updates=True, updates_hour=3)
    await seed.feed("Tech Daily", FEED_URL, ["tech"])
    web.add("GET", FEED_URL, httpx.Response(200, text=rss_xml([
        {"title": "Chip launch", "link": "https://news.test/chip", "published": now - timedelta(hours=1)},
    ])))
    fake_llm.complete_json.return_value = llm_result({"results": []})

    resp = await api.get(
        "/scheduled-updates", params={"user_id": str(profile.id), "force_update": "1"}, headers=KEY
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["processed"] is True
    assert data["notification_sent"] is False
    assert data["ai_result"]["items_generated"] == 0


@pytest.mark.asyncio
async def test_unknown_user(api, db) -> None:
    resp = await api.get("/scheduled-updates", params={"user_id": str(uuid.uuid4())}, headers=KEY)
    assert resp.status_code == 200
    assert resp.json()["processed"] is False
