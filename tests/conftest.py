"""
Shared fixtures: SQLite (aiosqlite) thay cho Postgres, fake HTTP qua httpx.MockTransport,
fake LLM (AsyncMock), media storage trong tmp_path.
Env phải được set trước khi import newslatch (settings + engine tạo lúc import).
"""
import os

os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_newslatch.db"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["SCHEDULER_API_KEY"] = "test-scheduler-key"
os.environ["PLACEMENT_API_TOKEN"] = "test-placement-token"
os.environ.pop("REDIS_URL", None)
os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("TELEGRAM_BOT_TOKEN", None)
os.environ.pop("ANALYZE_API_BASE_URL", None)
os.environ.pop("ANALYZE_API_KEY", None)

import uuid  # noqa: E402
from collections.abc import Callable  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from email.utils import format_datetime  # noqa: E402
from typing import Any, Optional, Union  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from jose import jwt  # noqa: E402

from newslatch.db import Base, async_session_factory, engine  # noqa: E402
from newslatch.dependencies import (  # noqa: E402
    get_http_client,
    get_image_throttle,
    get_llm_service,
    get_media_storage,
)
from newslatch.main import app  # noqa: E402
from newslatch.models import AdVariant, AiGeneratedItem, Campaign, RssFeed, UserProfile  # noqa: E402
from newslatch.services.llm_service import LLMResult, LLMService  # noqa: E402
from newslatch.services.media_storage import LocalMediaStorage  # noqa: E402
from newslatch.services.throttle import BatchThrottle  # noqa: E402

JWT_SECRET = "test-jwt-secret"
SCHEDULER_KEY = "test-scheduler-key"
PLACEMENT_TOKEN = "test-placement-token"

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


def make_token(user_id: uuid.UUID, **claims: Any) -> str:
    return jwt.encode({"sub": str(user_id), **claims}, JWT_SECRET, algorithm="HS256")


def auth_headers(user_id: uuid.UUID) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def llm_result(data: dict[str, Any], total_tokens: int = 120) -> LLMResult:
    return LLMResult(
        data=data,
        model="gpt-4o-mini",
        usage={"prompt_tokens": total_tokens - 20, "completion_tokens": 20, "total_tokens": total_tokens},
        latency_ms=5,
    )


def rss_xml(items: list[dict[str, Any]], title: str = "Test Feed") -> str:
    """RSS 2.0 document; item keys: title, link, description, published (datetime), image."""
    parts = []
    for it in items:
        fields = []
        if it.get("title") is not None:
            fields.append(f"<title>{it['title']}</title>")
        if it.get("link"):
            fields.append(f"<link>{it['link']}</link>")
        if it.get("description"):
            fields.append(f"<description>{it['description']}</description>")
        if it.get("published") is not None:
            fields.append(f"<pubDate>{format_datetime(it['published'], usegmt=True)}</pubDate>")
        if it.get("image"):
            fields.append(f'<enclosure url="{it["image"]}" type="image/jpeg" length="1000" />')
        parts.append("<item>" + "".join(fields) + "</item>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<rss version="2.0"><channel><title>{title}</title><link>https://news.test</link>'
        "<description>Test</description>" + "".join(parts) + "</channel></rss>"
    )


class FakeWeb:
    """Bảng route (METHOD, URL) -> Response cho httpx.MockTransport; ghi lại mọi request."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Route] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, url: str, route: Route) -> None:
        self.routes[(method.upper(), url)] = route

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, str(request.url)))
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        return route

    def requests_to(self, url_prefix: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).startswith(url_prefix)]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class Seeder:
    """Tạo dữ liệu test trực tiếp qua async_session_factory (commit ngay)."""

    async def _save(self, obj: Any) -> Any:
        async with async_session_factory() as session:
            session.add(obj)
            await session.commit()
            await session.refresh(obj)
        return obj

    async def profile(self, credits: int = 5, is_admin: bool = False, telegram_chat_id: Optional[str] = None) -> UserProfile:
        return await self._save(
            UserProfile(
                id=uuid.uuid4(),
                email="user@example.com",
                credits=credits,
                is_admin=is_admin,
                telegram_chat_id=telegram_chat_id,
            )
        )

    async def campaign(self, user_id: uuid.UUID, **kwargs: Any) -> Campaign:
        values: dict[str, Any] = {
            "name": "Acme Launch",
            "url": "https://acme.test",
            "description": "Acme builds developer tools",
            "product_description": "CI pipelines that never flake",
            "target_audience": "Engineering managers",
            "tags": ["devtools"],
            "rss_categories": ["tech"],
            "rss_countries": ["US"],
        }
        values.update(kwargs)
        return await self._save(Campaign(user_id=user_id, **values))

    async def feed(self, name: str, url: str, categories: list[str], is_active: bool = True) -> RssFeed:
        return await self._save(RssFeed(name=name, url=url, categories=categories, countries=["US"], is_active=is_active))

    async def item(self, campaign_id: uuid.UUID, **kwargs: Any) -> AiGeneratedItem:
        values: dict[str, Any] = {
            "headline": "Chipmaker unveils faster AI accelerator",
            "clickbait": "This chip changes everything",
            "link": f"https://news.test/articles/{uuid.uuid4().hex[:8]}",
            "relevance_score": 75,
            "trend": "AI hardware",
            "description": "A new accelerator doubles inference throughput.",
            "ad_placement": {"headline": "Ship faster", "body": "Acme CI keeps up with AI.", "cta": "Try Acme"},
            "tags": ["ai"],
            "keywords": ["chips"],
            "image_prompt": "A glowing microchip on a desk",
        }
        values.update(kwargs)
        return await self._save(AiGeneratedItem(campaign_id=campaign_id, **values))

    async def variant(self, ai_item_id: uuid.UUID, display_order: int = 1, **kwargs: Any) -> AdVariant:
        values: dict[str, Any] = {"headline": f"Variant headline {display_order}", "body": "Body", "cta": "Go"}
        values.update(kwargs)
        return await self._save(AdVariant(ai_item_id=ai_item_id, display_order=display_order, **values))


@pytest_asyncio.fixture
async def db():
    """Schema mới cho mỗi test; dispose engine cuối test để connection không sống qua event loop khác."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield async_session_factory
    await engine.dispose()


@pytest.fixture
def seed() -> Seeder:
    return Seeder()


@pytest.fixture
def web() -> FakeWeb:
    return FakeWeb()


@pytest.fixture
def fake_llm() -> MagicMock:
    llm = MagicMock(spec=LLMService)
    llm.complete_json = AsyncMock()
    llm.generate_image = AsyncMock()
    return llm


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest_asyncio.fixture
async def api(db, web: FakeWeb, fake_llm: MagicMock, tmp_path):
    """AsyncClient gọi app qua ASGITransport; outbound HTTP/LLM/storage đã được override."""

    async def _http_client():
        async with web.client() as client:
            yield client

    app.dependency_overrides[get_http_client] = _http_client
    app.dependency_overrides[get_llm_service] = lambda: fake_llm
    app.dependency_overrides[get_media_storage] = lambda: LocalMediaStorage(
        str(tmp_path / "media"), "http://test/media"
    )
    app.dependency_overrides[get_image_throttle] = lambda: BatchThrottle(concurrency=3, delay_seconds=0)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
