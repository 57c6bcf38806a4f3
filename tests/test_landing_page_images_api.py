"""
Ảnh cho section của landing page.
- POST /generate-landing-page-image: lưu ảnh dưới landing-pages/{page_id}/, ghi image_url vào đúng section.
- Check: params (400), page (404), owner (403), không có section (400), index ngoài range (400), ảnh hỏng (502).
- DELETE /landing-pages/{id}/images: xóa cả folder của page, image_url trỏ tới ảnh đã xóa thành None.
"""
import uuid
from io import BytesIO

import pytest
from PIL import Image

from conftest import auth_headers
from newslatch.models import LandingPage
from newslatch.services.landing_page_image_service import landing_page_image_prefix


def _png_bytes() -> bytes:
    buf = BytesIO()
    Image.new("RGB", (8, 8), (0, 128, 255)).save(buf, format="PNG")
    return buf.getvalue()


SECTIONS = [
    {"subtitle": "The news", "paragraphs": ["Chips got faster."], "image_url": "https://cdn.test/keep.jpg",
     "image_prompt": "A newsroom", "cta": None},
    {"subtitle": "The fix", "paragraphs": ["Acme CI keeps up."], "image_url": None,
     "image_prompt": "A glowing chip", "cta": "Start free trial"},
    {"subtitle": "Why now", "paragraphs": ["Deadlines."], "image_url": None, "image_prompt": None, "cta": None},
]


async def _page(seed, db, sections=None):
    profile = await seed.profile()
    campaign = await seed.campaign(profile.id)
    item = await seed.item(campaign.id)
    async with db() as session:
        page = LandingPage(
            ai_item_id=item.id,
            title="Faster chips",
            slug=f"faster-chips-{uuid.uuid4().hex[:6]}",
            sections=SECTIONS if sections is None else sections,
        )
        session.add(page)
        await session.commit()
        return profile, page.id


async def _sections(db, page_id) -> list[dict]:
    async with db() as session:
        return (await session.get(LandingPage, page_id)).sections


@pytest.mark.asyncio
async def test_generate_section_image(api, seed, db, fake_llm, tmp_path) -> None:
    profile, page_id = await _page(seed, db)
    fake_llm.generate_image.return_value = _png_bytes()
    headers = auth_headers(profile.id)

    resp = await api.post(
        "/generate-landing-page-image",
        json={"landing_page_id": str(page_id), "section_index": 1},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["message"] == "Image generated and uploaded successfully"
    assert data["section_index"] == 1
    assert data["landing_page_id"] == str(page_id)
    assert data["image_url"].startswith(f"http://test/media/landing-pages/{page_id}/")
    assert data["image_url"].endswith(".jpg")
    assert fake_llm.generate_image.call_args.args[0] == "A glowing chip"

    key = data["image_url"].removeprefix("http://test/media/")
    assert (tmp_path / "media" / key).read_bytes()[:2] == b"\xff\xd8"

    sections = await _sections(db, page_id)
    assert sections[1]["image_url"] == data["image_url"]
    assert sections[1]["image_prompt"] == "A glowing chip"
    assert sections[0] == SECTIONS[0]

    # prompt riêng được dùng và lưu lại cho section
    custom = await api.post(
        "/generate-landing-page-image",
        json={"landing_page_id": str(page_id), "section_index": 2, "image_prompt": "  A calendar  "},
        headers=headers,
    )
    assert custom.status_code == 200, custom.text
    assert fake_llm.generate_image.call_args.args[0] == "A calendar"
    sections = await _sections(db, page_id)
    assert sections[2]["image_prompt"] == "A calendar"
    assert sections[2]["image_url"] == custom.json()["image_url"]


@pytest.mark.asyncio
async def test_generate_section_image_validation(api, seed, db, fake_llm) -> None:
    profile, page_id = await _page(seed, db)
    headers = auth_headers(profile.id)

    missing = await api.post("/generate-landing-page-image", json={"landing_page_id": str(page_id)}, headers=headers)
    assert missing.status_code == 400
    assert missing.json()["error"] == "Missing required parameters"

    unknown = await api.post(
        "/generate-landing-page-image",
        json={"landing_page_id": str(uuid.uuid4()), "section_index": 0},
        headers=headers,
    )
    assert unknown.status_code == 404
    assert unknown.json()["error"] == "Landing page not found"

    intruder = await seed.profile()
    denied = await api.post(
        "/generate-landing-page-image",
        json={"landing_page_id": str(page_id), "section_index": 0},
        headers=auth_headers(intruder.id),
    )
    assert denied.status_code == 403

    for index in (3, -1):
        out_of_range = await api.post(
            "/generate-landing-page-image",
            json={"landing_page_id": str(page_id), "section_index": index},
            headers=headers,
        )
        assert out_of_range.status_code == 400
        assert out_of_range.json()["error"] == "Invalid section index"

    no_prompt = await api.post(
        "/generate-landing-page-image",
        json={"landing_page_id": str(page_id), "section_index": 2},
        headers=headers,
    )
    assert no_prompt.status_code == 400
    assert no_prompt.json()["error"] == "No image prompt available"

    owner, empty_page_id = await _page(seed, db, sections=[])
    empty = await api.post(
        "/generate-landing-page-image",
        json={"landing_page_id": str(empty_page_id), "section_index": 0},
        headers=auth_headers(owner.id),
    )
    assert empty.status_code == 400
    assert empty.json()["error"] == "Invalid landing page structure"
    fake_llm.generate_image.assert_not_called()


@pytest.mark.asyncio
async def test_unreadable_image_is_bad_gateway(api, seed, db, fake_llm) -> None:
    profile, page_id = await _page(seed, db)
    fake_llm.generate_image.return_value = b"not an image"

    resp = await api.post(
        "/generate-landing-page-image",
        json={"landing_page_id": str(page_id), "section_index": 1},
        headers=auth_headers(profile.id),
    )
    assert resp.status_code == 502
    assert resp.json()["error"] == "Invalid image data"
    assert (await _sections(db, page_id))[1]["image_url"] is None


@pytest.mark.asyncio
async def test_delete_landing_page_images(api, seed, db, fake_llm, tmp_path) -> None:
    profile, page_id = await _page(seed, db)
    fake_llm.generate_image.return_value = _png_bytes()
    headers = auth_headers(profile.id)
    generated = await api.post(
        "/generate-landing-page-image",
        json={"landing_page_id": str(page_id), "section_index": 1},
        headers=headers,
    )
    assert generated.status_code == 200, generated.text

    media = tmp_path / "media"
    orphan = media / landing_page_image_prefix(page_id) / "2024-01-01_old.jpg"
    orphan.write_bytes(b"old")
    other = media / landing_page_image_prefix(uuid.uuid4()) / "2024-01-01_other.jpg"
    other.parent.mkdir(parents=True)
    other.write_bytes(b"other")

    intruder = await seed.profile()
    denied = await api.delete(f"/landing-pages/{page_id}/images", headers=auth_headers(intruder.id))
    assert denied.status_code == 403
    assert orphan.exists()

    resp = await api.delete(f"/landing-pages/{page_id}/images", headers=headers)
    assert resp.status_code == 200, resp.text
    assert resp.json() == {
        "success": True,
        "message": "Images deleted successfully",
        "deleted_count": 2,
        "landing_page_id": str(page_id),
    }
    assert not orphan.exists()
    assert other.exists()
    sections = await _sections(db, page_id)
    assert sections[1]["image_url"] is None
    assert sections[0]["image_url"] == "https://cdn.test/keep.jpg"

    again = await api.delete(f"/landing-pages/{page_id}/images", headers=headers)
    assert again.json()["deleted_count"] == 0
