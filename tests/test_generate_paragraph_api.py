"""
POST /generate-paragraph: một section mới cho landing page theo contentType.
- Không gửi context => context dựng từ title, campaign, các section hiện có.
- contentType lạ => instruction mặc định.
- Thiếu field => 400, page 404/403, output LLM thiếu paragraphs => 500.
"""
import uuid

import pytest
from sqlalchemy import func, select

from conftest import auth_headers, llm_result
from newslatch.models import AiUsageLog, LandingPage
from newslatch.services.prompts import DEFAULT_PARAGRAPH_INSTRUCTION, PARAGRAPH_CONTENT_TYPES

SECTION = {
    "subtitle": "How it works",
    "paragraphs": ["Connect your repo.", "  ", "Ship on green."],
    "image_prompt": "A pipeline diagram",
    "cta": "",
}


async def _page(seed, db):
    profile = await seed.profile()
    campaign = await seed.campaign(profile.id)
    item = await seed.item(campaign.id)
    async with db() as session:
        page = LandingPage(ai_item_id=item.id, title="Faster chips", slug="faster-chips-0a1b2c", sections=[
            {"subtitle": "The news", "paragraphs": ["Chips got faster."], "image_url": None,
             "image_prompt": None, "cta": None},
        ])
        session.add(page)
        await session.commit()
        return profile, page.id


async def _usage_rows(db) -> int:
    async with db() as session:
        return (await session.execute(select(func.count()).select_from(AiUsageLog))).scalar()


@pytest.mark.asyncio
async def test_generate_paragraph_with_page_context(api, seed, db, fake_llm) -> None:
    profile, page_id = await _page(seed, db)
    fake_llm.complete_json.return_value = llm_result(SECTION)

    resp = await api.post(
        "/generate-paragraph",
        json={"landingPageId": str(page_id), "prompt": "Explain the setup", "contentType": "how-it-works"},
        headers=auth_headers(profile.id),
    )
    assert resp.status_code == 200, resp.text
    assert resp.json() == {
        "success": True,
        "section": {
            "subtitle": "How it works",
            "paragraphs": ["Connect your repo.", "Ship on green."],
            "image_prompt": "A pipeline diagram",
            "cta": None,
        },
        "contentType": "how-it-works",
    }

    _, user_prompt = fake_llm.complete_json.call_args.args[:2]
    assert fake_llm.complete_json.call_args.kwargs["feature"] == "paragraph"
    assert "Landing page title: Faster chips" in user_prompt
    assert "Campaign: Acme Launch" in user_prompt
    assert "Chips got faster." in user_prompt
    assert "Explain the setup" in user_prompt
    assert PARAGRAPH_CONTENT_TYPES["how-it-works"] in user_prompt
    assert await _usage_rows(db) == 1


@pytest.mark.asyncio
async def test_custom_context_and_unknown_content_type(api, seed, db, fake_llm) -> None:
    profile, page_id = await _page(seed, db)
    fake_llm.complete_json.return_value = llm_result(SECTION)

    resp = await api.post(
        "/generate-paragraph",
        json={
            "landingPageId": str(page_id),
            "prompt": "Say hello",
            "contentType": "haiku",
            "context": "Only this context",
        },
        headers=auth_headers(profile.id),
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["contentType"] == "haiku"
    _, user_prompt = fake_llm.complete_json.call_args.args[:2]
    assert "Only this context" in user_prompt
    assert "Chips got faster." not in user_prompt
    assert DEFAULT_PARAGRAPH_INSTRUCTION in user_prompt


@pytest.mark.asyncio
async def test_generate_paragraph_errors(api, seed, db, fake_llm) -> None:
    profile, page_id = await _page(seed, db)
    headers = auth_headers(profile.id)

    for body in (
        {"landingPageId": str(page_id), "prompt": "Hi"},
        {"landingPageId": str(page_id), "prompt": "   ", "contentType": "comparison"},
        {"prompt": "Hi", "contentType": "comparison"},
    ):
        missing = await api.post("/generate-paragraph", json=body, headers=headers)
        assert missing.status_code == 400
        assert missing.json()["error"] == "Missing required fields"

    body = {"landingPageId": str(uuid.uuid4()), "prompt": "Hi", "contentType": "comparison"}
    unknown = await api.post("/generate-paragraph", json=body, headers=headers)
    assert unknown.status_code == 404

    intruder = await seed.profile()
    body["landingPageId"] = str(page_id)
    denied = await api.post("/generate-paragraph", json=body, headers=auth_headers(intruder.id))
    assert denied.status_code == 403
    fake_llm.complete_json.assert_not_called()

    fake_llm.complete_json.return_value = llm_result({"subtitle": "Empty", "paragraphs": ["", " "]})
    invalid = await api.post("/generate-paragraph", json=body, headers=headers)
    assert invalid.status_code == 500
    assert invalid.json()["error"] == "Invalid AI response structure"
    assert await _usage_rows(db) == 0
