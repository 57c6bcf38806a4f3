"""
POST /ai-generate: RSS -> ảnh -> LLM -> lưu ai_generated_items.
- Item mới is_published=False, ảnh og:image được gắn theo link, usage log được ghi.
- Gọi lại với cùng link => không tạo trùng (items_skipped).
- Hết credit => 402, campaign người khác => 403, không có RSS item => 400.
- LLM trả output sai cấu trúc => 500 và không có row nào được lưu.
"""
import uuid
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from sqlalchemy import func, select

from conftest import auth_headers, llm_result, rss_xml
from newslatch.models import AiGeneratedItem, AiUsageLog, Campaign
from newslatch.services.ai_generate_service import map_result_to_item

FEED_URL = "https://feeds.test/tech.xml"
LINK_A = "https://news.test/a/chip-launch"
LINK_B = "https://news.test/b/cloud-outage"


def _llm_payload() -> dict:
    return {
        "trend_summary": "AI hardware is hot",
        "campaign_strategy": "Tie CI speed to AI momentum",
        "results": [
            {
                "headline": "Chipmaker unveils accelerator",
                "clickbait": "The chip everyone is talking about",
                "link": LINK_A,
                "relevance_score": 92,
                "trend": "AI hardware",
                "description": "Faster inference for everyone.",
                "tooltip": "Why it matters",
                "ad_placement": {"headline": "Ship faster", "body": "Acme CI keeps up.", "cta": "Try Acme"},
                "tags": ["ai", "chips"],
                "keywords": ["accelerator"],
                "image_prompt": "A glowing chip",
            },
            {
                "headline": "Cloud outage hits developers",
                "link": LINK_B,
                "relevance_score": "61.4",
                "description": "Builds stalled for hours.",
            },
        ],
    }


async def _setup(seed, web, credits: int = 3):
    now = datetime.now(timezone.utc)
    profile = await seed.profile(credits=credits)
    campaign = await seed.campaign(profile.id, rss_categories=["tech"])
    await seed.feed("Tech Daily", FEED_URL, ["tech"])
    web.add("GET", FEED_URL, httpx.Response(200, text=rss_xml([
        {"title": "Chipmaker unveils accelerator", "link": LINK_A, "published": now - timedelta(hours=1)},
        {"title": "Cloud outage hits developers", "link": LINK_B, "published": now - timedelta(hours=2)},
        {"title": "Last week's recap", "link": "https://news.test/c/recap", "published": now - timedelta(days=2)},
    ])))
    web.add("GET", LINK_A, httpx.Response(200, text='<meta property="og:image" content="/img/chip.jpg">'))
    web.add("HEAD", "https://news.test/img/chip.jpg", httpx.Response(200, headers={"Content-Type": "image/jpeg"}))
    return profile, campaign


@pytest.mark.asyncio
async def test_ai_generate_saves_unpublished_items(api, seed, web, fake_llm, db) -> None:
    profile, campaign = await _setup(seed, web)
    fake_llm.complete_json.return_value = llm_result(_llm_payload())

    resp = await api.post("/ai-generate", json={"campaignId": str(campaign.id)}, headers=auth_headers(profile.id))
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["success"] is True
    assert data["items_generated"] == 2
    assert data["items_with_images"] == 1
    assert data["ai_analysis"]["rss_items_analyzed"] == 2
    assert data["ai_analysis"]["trend_summary"] == "AI hardware is hot"

    by_link = {item["link"]: item for item in data["saved_items"]}
    assert by_link[LINK_A]["image_url"] == "https://news.test/img/chip.jpg"
    assert by_link[LINK_A]["is_published"] is False
    assert by_link[LINK_B]["relevance_score"] == 61
    assert by_link[LINK_B]["ad_placement"]["cta"] == "Learn More"
    assert by_link[LINK_B]["tags"] == ["tech"]

    # prompt chỉ chứa 2 tin trong 24h
    _, user_prompt = fake_llm.complete_json.call_args.args[:2]
    assert LINK_A in user_prompt and LINK_B in user_prompt
    assert "recap" not in user_prompt

    async with db() as session:
        saved = (await session.execute(select(func.count()).select_from(AiGeneratedItem))).scalar()
        usage = (await session.execute(select(AiUsageLog))).scalars().all()
    assert saved == 2
    assert [u.feature for u in usage] == ["ai_generate"]
    assert usage[0].user_id == profile.id


@pytest.mark.asyncio
async def test_ai_generate_skips_existing_links(api, seed, web, fake_llm, db) -> None:
    profile, campaign = await _setup(seed, web)
    fake_llm.complete_json.return_value = llm_result(_llm_payload())
    headers = auth_headers(profile.id)

    first = await api.post("/ai-generate", json={"campaignId": str(campaign.id)}, headers=headers)
    assert first.status_code == 200, first.text
    second = await api.post("/ai-generate", json={"campaignId": str(campaign.id)}, headers=headers)
    assert second.status_code == 200, second.text
    data = second.json()
    assert data["items_generated"] == 0
    assert data["items_skipped"] == 2
    assert data["message"] == "No new AI content (all items already exist)"

    async with db() as session:
        saved = (await session.execute(select(func.count()).select_from(AiGeneratedItem))).scalar()
    assert saved == 2


@pytest.mark.asyncio
async def test_ai_generate_requires_credits(api, seed, web, fake_llm) -> None:
    profile, campaign = await _setup(seed, web, credits=0)
    resp = await api.post("/ai-generate", json={"campaignId": str(campaign.id)}, headers=auth_headers(profile.id))
    assert resp.status_code == 402, resp.text
    assert resp.json()["error"] == "Insufficient credits"
    fake_llm.complete_json.assert_not_called()


@pytest.mark.asyncio
async def test_ai_generate_rejects_other_users_campaign(api, seed, web, fake_llm) -> None:
    _, campaign = await _setup(seed, web)
    intruder = await seed.profile(credits=5)
    resp = await api.post("/ai-generate", json={"campaignId": str(campaign.id)}, headers=auth_headers(intruder.id))
    assert resp.status_code == 403, resp.text
    fake_llm.complete_json.assert_not_called()


@pytest.mark.asyncio
async def test_ai_generate_without_rss_content(api, seed, web, fake_llm) -> None:
    profile = await seed.profile(credits=3)
    campaign = await seed.campaign(profile.id, rss_categories=["tech"])
    await seed.feed("Dead feed", "https://feeds.test/dead.xml", ["tech"])
    resp = await api.post("/ai-generate", json={"campaignId": str(campaign.id)}, headers=auth_headers(profile.id))
    assert resp.status_code == 400, resp.text
    assert resp.json()["error"] == "No RSS content found"
    fake_llm.complete_json.assert_not_called()


@pytest.mark.asyncio
async def test_ai_generate_invalid_llm_output(api, seed, web, fake_llm, db) -> None:
    profile, campaign = await _setup(seed, web)
    fake_llm.complete_json.return_value = llm_result({"trend_summary": "no results key"})

    resp = await api.post("/ai-generate", json={"campaignId": str(campaign.id)}, headers=auth_headers(profile.id))
    assert resp.status_code == 500, resp.text
    assert resp.json() == {
        "success": False,
        "error": "Invalid AI response structure",
        "details": "The AI response is missing required fields (results)",
    }
    async with db() as session:
        saved = (await session.execute(select(func.count()).select_from(AiGeneratedItem))).scalar()
    assert saved == 0


@pytest.mark.asyncio
async def test_ai_generate_validates_body(api, seed) -> None:
    profile = await seed.profile()
    resp = await api.post("/ai-generate", json={"campaignId": "nope"}, headers=auth_headers(profile.id))
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request"


def test_relevance_score_is_clamped_and_tolerates_bad_numbers() -> None:
    campaign = Campaign(id=uuid.uuid4(), user_id=uuid.uuid4(), name="Acme", rss_categories=["tech"])
    scores = [
        map_result_to_item({"headline": "Chip launch", "relevance_score": raw}, campaign, {}).relevance_score
        for raw in ("1e999", float("inf"), float("nan"), 150, -3, "not a number", None)
    ]
    assert scores == [0, 0, 0, 100, 0, 0, 0]
