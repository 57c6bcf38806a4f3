"""
/admin-rss-feeds: chỉ admin (profiles.is_admin).
- Không phải admin => 403; không có token => 401.
- POST thiếu name/url => 400; category lowercase, country uppercase.
- PUT/DELETE cần ?id=: thiếu => 400, không tồn tại => 404.
"""
import uuid

import pytest

from conftest import auth_headers


@pytest.mark.asyncio
async def test_admin_only(api, seed) -> None:
    user = await seed.profile(is_admin=False)
    assert (await api.get("/admin-rss-feeds")).status_code == 401
    denied = await api.get("/admin-rss-feeds", headers=auth_headers(user.id))
    assert denied.status_code == 403
    assert denied.json()["error"] == "Admin access required"


@pytest.mark.asyncio
async def test_admin_feed_crud(api, seed) -> None:
    admin = await seed.profile(is_admin=True)
    headers = auth_headers(admin.id)

    created = await api.post(
        "/admin-rss-feeds",
        json={"name": "Tech Daily", "url": "https://feeds.test/tech.xml", "categories": ["Tech", "AI"], "countries": ["us"]},
        headers=headers,
    )
    assert created.status_code == 201, created.text
    feed = created.json()["feed"]
    assert feed["categories"] == ["tech", "ai"]
    assert feed["countries"] == ["US"]
    assert feed["is_active"] is True

    invalid = await api.post("/admin-rss-feeds", json={"name": "No url"}, headers=headers)
    assert invalid.status_code == 400
    assert invalid.json()["error"] == "Missing required fields"

    listed = await api.get("/admin-rss-feeds", headers=headers)
    assert listed.json()["count"] == 1

    updated = await api.put(
        "/admin-rss-feeds", params={"id": feed["id"]}, json={"is_active": False, "name": "Tech Weekly"}, headers=headers
    )
    assert updated.status_code == 200, updated.text
    assert updated.json()["feed"]["is_active"] is False
    assert updated.json()["feed"]["name"] == "Tech Weekly"
    assert updated.json()["feed"]["url"] == "https://feeds.test/tech.xml"

    no_id = await api.put("/admin-rss-feeds", json={"is_active": True}, headers=headers)
    assert no_id.status_code == 400
    assert no_id.json()["error"] == "Missing feed ID"

    unknown = await api.delete("/admin-rss-feeds", params={"id": str(uuid.uuid4())}, headers=headers)
    assert unknown.status_code == 404
    assert unknown.json()["error"] == "Feed not found"

    bad_id = await api.delete("/admin-rss-feeds", params={"id": "123"}, headers=headers)
    assert bad_id.status_code == 400

    deleted = await api.delete("/admin-rss-feeds", params={"id": feed["id"]}, headers=headers)
    assert deleted.status_code == 200
    assert (await api.get("/admin-rss-feeds", headers=headers)).json()["count"] == 0
