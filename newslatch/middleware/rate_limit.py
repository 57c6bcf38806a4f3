"""
Rate limit middleware: Redis sliding window, key theo bearer token (user) hoặc X-API-Key.
Default 60 req/min/key. Khi không có REDIS_URL thì bỏ qua (không block).
"""
import hashlib
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from newslatch.config import get_settings
from newslatch.errors import ErrorKind, error_response
from newslatch.logging_config import get_logger

logger = get_logger(__name__)

REDIS_KEY_PREFIX = "rl:"
WINDOW_SECONDS = 60


def _digest(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:32]


def _rate_limit_key(request: Request) -> Optional[str]:
    """Key cho rate limit: hash của bearer token, hoặc X-API-Key / x-api-key (scheduler, placement)."""
    auth = request.headers.get("Authorization", "").strip()
    if auth.lower().startswith("bearer ") and auth[7:].strip():
        return f"bearer:{_digest(auth[7:].strip())}"
    api_key = request.headers.get("X-API-Key", "").strip()
    if api_key:
        return f"key:{_digest(api_key)}"
    return None


async def _check_sliding_window(redis_url: str, key: str, limit: int) -> bool:
    """
    Sliding window: ZADD now, ZREMRANGEBYSCORE -inf (now-60), ZCARD.
    Returns True nếu cho phép request (dưới limit), False nếu vượt. Redis lỗi => cho qua.
    """
    now = time.time()
    rkey = REDIS_KEY_PREFIX + key
    try:
        client = Redis.from_url(redis_url, decode_responses=True)
        try:
            pipe = client.pipeline()
            pipe.zadd(rkey, {str(uuid.uuid4()): now})
            pipe.zremrangebyscore(rkey, "-inf", now - WINDOW_SECONDS)
            pipe.zcard(rkey)
            pipe.expire(rkey, WINDOW_SECONDS + 10)
            results = await pipe.execute()
            count = results[2] if len(results) > 2 else 0
            return count <= limit
        finally:
            await client.aclose()
    except (RedisError, OSError) as e:
        logger.warning("rate_limit.redis_error", key=key, error=str(e))
        return True


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware: rate limit theo user token hoặc api key (Redis sliding window)."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        if not settings.redis_url or request.method == "OPTIONS":
            return await call_next(request)
        key = _rate_limit_key(request)
        if not key:
            return await call_next(request)
        limit = settings.rate_limit_per_min
        allowed = await _check_sliding_window(settings.redis_url, key, limit)
        if not allowed:
            logger.info("rate_limit.exceeded", key=key, limit=limit)
            return error_response(
                ErrorKind.RATE_LIMITED,
                "Rate limit exceeded",
                f"Limit is {limit} requests per minute",
                headers={"Retry-After": str(WINDOW_SECONDS)},
            )
        return await call_next(request)
