"""
/admin-users: list user và set is_admin chỉ cho admin; /profile cho mọi user (tạo nếu chưa có).
"""
import uuid

import pytest

from conftest import auth_headers, make_token
from newslatch.models import UserProfile


@pytest.mark.asyncio
async def test_own_profile_is_created_on_first_visit(api, db) -> None:
    user_id = uuid.uuid4()
    headers = {"Authorization": f"Bearer {make_token(user_id, email='new@example.com')}"}

    first = await api.get("/admin-users/profile", headers=headers)
    assert first.status_code == 200, first.text
    profile = first.json()["profile"]
    assert profile["id"] == str(user_id)
    assert profile["email"] == "new@example.com"
    assert profile["is_admin"] is False

    again = await api.get("/admin-users/profile", headers=headers)
    assert again.json()["profile"]["created_at"] == profile["created_at"]
    async with db() as session:
        assert (await session.get(UserProfile, user_id)) is not None


@pytest.mark.asyncio
async def test_list_users_requires_admin(api, seed) -> None:
    admin = await seed.profile(is_admin=True)
    regular = await seed.profile(credits=3)

    denied = await api.get("/admin-users", headers=auth_headers(regular.id))
    assert denied.status_code == 403
    assert denied.json()["error"] == "Admin access required"

    resp = await api.get("/admin-users", headers=auth_headers(admin.id))
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["count"] == 2
    assert {u["id"] for u in data["users"]} == {str(admin.id), str(regular.id)}
    by_id = {u["id"]: u for u in data["users"]}
    assert by_id[str(regular.id)]["credits"] == 3


@pytest.mark.asyncio
async def test_set_admin_flag(api, seed, db) -> None:
    admin = await seed.profile(is_admin=True)
    target = await seed.profile()
    headers = auth_headers(admin.id)

    promoted = await api.put("/admin-users", params={"user_id": str(target.id)}, json={"is_admin": True}, headers=headers)
    assert promoted.status_code == 200, promoted.text
    assert promoted.json()["user"]["is_admin"] is True
    async with db() as session:
        assert (await session.get(UserProfile, target.id)).is_admin is True

    missing_id = await api.put("/admin-users", json={"is_admin": False}, headers=headers)
    assert missing_id.status_code == 400
    assert missing_id.json()["error"] == "User ID is required"

    bad_id = await api.put("/admin-users", params={"user_id": "nope"}, json={"is_admin": False}, headers=headers)
    assert bad_id.status_code == 400

    for value in ("true", 1, None):
        not_bool = await api.put(
            "/admin-users", params={"user_id": str(target.id)}, json={"is_admin": value}, headers=headers
        )
        assert not_bool.status_code == 400
        assert not_bool.json()["error"] == "is_admin must be a boolean"

    unknown = await api.put("/admin-users", params={"user_id": str(uuid.uuid4())}, json={"is_admin": True}, headers=headers)
    assert unknown.status_code == 404
    assert unknown.json()["error"] == "User not found"

    regular = await seed.profile()
    denied = await api.put(
        "/admin-users", params={"user_id": str(regular.id)}, json={"is_admin": True}, headers=auth_headers(regular.id)
    )
    assert denied.status_code == 403
    async with db() as session:
        assert (await session.get(UserProfile, regular.id)).is_admin is False
