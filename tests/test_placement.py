"""
GET /campaign-placement: static token (Bearer hoặc X-API-Key), item published mới nhất.
"""
import uuid

import pytest

from conftest import PLACEMENT_TOKEN


@pytest.mark.asyncio
async def test_placement_requires_token(api, db) -> None:
    resp = await api.get("/campaign-placement", params={"campaign_id": str(uuid.uuid4())})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Unauthorized: Invalid API token"

    wrong = await api.get(
        "/campaign-placement",
        params={"campaign_id": str(uuid.uuid4())},
        headers={"Authorization": "Bearer wrong"},
    )
    assert wrong.status_code == 401


@pytest.mark.asyncio
async def test_placement_lookup_errors(api, seed) -> None:
    headers = {"X-API-Key": PLACEMENT_TOKEN}
    missing = await api.get("/campaign-placement", headers=headers)
    assert missing.status_code == 400
    assert missing.json()["error"] == "Missing campaign_id parameter"

    unknown = await api.get("/campaign-placement", params={"campaign_id": str(uuid.uuid4())}, headers=headers)
    assert unknown.status_code == 404

    profile = await seed.profile()
    campaign = await seed.campaign(profile.id)
    await seed.item(campaign.id, is_published=False)
    empty = await api.get("/campaign-placement", params={"campaign_id": str(campaign.id)}, headers=headers)
    assert empty.status_code == 404
    assert empty.json()["error"] == "No published items found for this campaign"


@pytest.mark.asyncio
async def test_placement_renders_escaped_creatives(api, seed) -> None:
    profile = await seed.profile()
    campaign = await seed.campaign(profile.id)
    item = await seed.item(
        campaign.id,
        is_published=True,
        ad_placement={"headline": "Ship <b>faster</b>", "body": "CI & CD", "cta": "Try Acme"},
        image_url="https://cdn.test/chip.jpg",
    )

    resp = await api.get(
        "/campaign-placement",
        params={"campaign_id": str(campaign.id)},
        headers={"Authorization": f"Bearer {PLACEMENT_TOKEN}"},
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["item"]["id"] == str(item.id)
    assert [(ad["width"], ad["height"]) for ad in data["ads"]] == [(300, 250), (300, 100)]
    for ad in data["ads"]:
        assert ad["mimeType"] == "text/html"
        assert ad["creativeId"] == str(item.id)
        assert "Ship &lt;b&gt;faster&lt;/b&gt;" in ad["adm"]
        assert "<b>" not in ad["adm"]
        assert "CI &amp; CD" in ad["adm"]
        assert "https://cdn.test/chip.jpg" in ad["adm"]
