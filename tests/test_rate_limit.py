"""
RateLimitMiddleware: Redis sliding window theo bearer token / X-API-Key.
- Vượt limit => 429 envelope chuẩn + Retry-After.
- Key là hash, không chứa token gốc.
- Không có REDIS_URL hoặc Redis lỗi => cho qua.
"""
import hashlib

import pytest
from redis.exceptions import RedisError
from starlette.requests import Request

from newslatch.config import get_settings
from newslatch.middleware import rate_limit
from newslatch.middleware.rate_limit import WINDOW_SECONDS, _check_sliding_window, _rate_limit_key

REDIS_URL = "redis://ratelimit.test:6379/0"


def _request(headers: dict[str, str]) -> Request:
    raw = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers.items()]
    return Request({"type": "http", "method": "GET", "path": "/credits", "headers": raw})


def _sha(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:32]


class _FakePipeline:
    def __init__(self, count: int) -> None:
        self.count = count
        self.calls: list[str] = []

    def zadd(self, *args, **kwargs):
        self.calls.append("zadd")

    def zremrangebyscore(self, *args, **kwargs):
        self.calls.append("zremrangebyscore")

    def zcard(self, *args, **kwargs):
        self.calls.append("zcard")

    def expire(self, *args, **kwargs):
        self.calls.append("expire")

    async def execute(self) -> list:
        return [1, 0, self.count, True]


class _FakeRedis:
    count = 0

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "_FakeRedis":
        return cls()

    def pipeline(self) -> _FakePipeline:
        return _FakePipeline(self.count)

    async def aclose(self) -> None:
        return None


class _DownRedis:
    @classmethod
    def from_url(cls, url: str, **kwargs):
        raise RedisError("connection refused")


@pytest.fixture
def redis_enabled(monkeypatch):
    monkeypatch.setattr(
        rate_limit, "get_settings", lambda: get_settings().model_copy(update={"redis_url": REDIS_URL})
    )


def test_key_hashes_bearer_token_and_api_key() -> None:
    bearer = _rate_limit_key(_request({"Authorization": "Bearer secret-token"}))
    assert bearer == f"bearer:{_sha('secret-token')}"
    assert "secret-token" not in bearer

    api_key = _rate_limit_key(_request({"X-API-Key": "placement-key"}))
    assert api_key == f"key:{_sha('placement-key')}"

    assert _rate_limit_key(_request({})) is None
    assert _rate_limit_key(_request({"Authorization": "Bearer "})) is None


@pytest.mark.asyncio
async def test_sliding_window_counts_against_limit(monkeypatch) -> None:
    monkeypatch.setattr(rate_limit, "Redis", _FakeRedis)
    monkeypatch.setattr(_FakeRedis, "count", 60)
    assert await _check_sliding_window(REDIS_URL, "bearer:abc", 60) is True
    monkeypatch.setattr(_FakeRedis, "count", 61)
    assert await _check_sliding_window(REDIS_URL, "bearer:abc", 60) is False


@pytest.mark.asyncio
async def test_redis_error_fails_open(monkeypatch) -> None:
    monkeypatch.setattr(rate_limit, "Redis", _DownRedis)
    assert await _check_sliding_window(REDIS_URL, "bearer:abc", 1) is True


@pytest.mark.asyncio
async def test_over_limit_returns_429_envelope(api, db, redis_enabled, monkeypatch) -> None:
    async def _deny(redis_url: str, key: str, limit: int) -> bool:
        return False

    monkeypatch.setattr(rate_limit, "_check_sliding_window", _deny)
    resp = await api.get("/api/healthz", headers={"Authorization": "Bearer any-token"})
    assert resp.status_code == 429
    assert resp.json() == {
        "success": False,
        "error": "Rate limit exceeded",
        "details": f"Limit is {get_settings().rate_limit_per_min} requests per minute",
    }
    assert resp.headers["Retry-After"] == str(WINDOW_SECONDS)

    # request không có token/API key không bị giới hạn
    anonymous = await api.get("/api/healthz")
    assert anonymous.status_code == 200


@pytest.mark.asyncio
async def test_redis_outage_lets_requests_through(api, db, redis_enabled, monkeypatch) -> None:
    monkeypatch.setattr(rate_limit, "Redis", _DownRedis)
    resp = await api.get("/api/healthz", headers={"X-API-Key": "some-key"})
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_without_redis_url_nothing_is_checked(api, db, monkeypatch) -> None:
    async def _fail(*args):
        raise AssertionError("rate limit must be skipped without REDIS_URL")

    monkeypatch.setattr(rate_limit, "_check_sliding_window", _fail)
    resp = await api.get("/api/healthz", headers={"Authorization": "Bearer any-token"})
    assert resp.status_code == 200
