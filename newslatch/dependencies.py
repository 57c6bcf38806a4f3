"""
FastAPI dependencies: auth (JWT bearer, admin, scheduler key, placement token)
và shared resources (HTTP client, LLM, storage, throttle) để test override được.
"""
import secrets
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import UUID

import httpx
from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings, get_settings
from newslatch.db import get_db
from newslatch.errors import AppError, ErrorKind
from newslatch.logging_config import bind_user_context, get_logger
from newslatch.models import UserProfile
from newslatch.services.image_extractor import ImageExtractor
from newslatch.services.llm_service import LLMService
from newslatch.services.media_storage import LocalMediaStorage, MediaStorage
from newslatch.services.telegram_service import TelegramNotifier
from newslatch.services.throttle import BatchThrottle

logger = get_logger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    id: UUID
    email: Optional[str] = None
    claims: dict[str, Any] = field(default_factory=dict)


def decode_access_token(token: str, settings: Settings) -> dict[str, Any]:
    """Verify HS256 JWT bằng JWT_SECRET; audience chỉ check khi JWT_AUDIENCE được set."""
    if not settings.jwt_secret:
        raise AppError(ErrorKind.CONFIGURATION, "Authentication not configured", "JWT_SECRET is not set")
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options={"verify_aud": bool(settings.jwt_audience)},
        )
    except JWTError as e:
        raise AppError(ErrorKind.UNAUTHORIZED, "Invalid or expired token", str(e)) from e


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """Authorization: Bearer <jwt>; sub = user id. Thiếu/sai => 401."""
    if credentials is None or not credentials.credentials:
        raise AppError(ErrorKind.UNAUTHORIZED, "Missing authorization header", "Provide a Bearer token")
    claims = decode_access_token(credentials.credentials, settings)
    try:
        user_id = UUID(str(claims.get("sub")))
    except ValueError:
        raise AppError(ErrorKind.UNAUTHORIZED, "Invalid token subject", "Token sub must be a user id") from None
    bind_user_context(user_id)
    return CurrentUser(id=user_id, email=claims.get("email"), claims=claims)


async def require_admin(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """User phải có profiles.is_admin = true; ngược lại 403."""
    profile = await db.get(UserProfile, user.id)
    if profile is None or not profile.is_admin:
        logger.info("auth.admin_denied", user_id=str(user.id))
        raise AppError(ErrorKind.FORBIDDEN, "Admin access required", "Your account is not an administrator")
    return user


async def require_scheduler_key(
    x_api_key: Optional[str] = Header(None, alias="x-api-key"),
    settings: Settings = Depends(get_settings),
) -> None:
    """x-api-key cho external cron: thiếu 401, server chưa cấu hình 500, sai 403."""
    if not x_api_key:
        raise AppError(ErrorKind.UNAUTHORIZED, "Missing API key", "Provide the x-api-key header")
    if not settings.scheduler_api_key:
        raise AppError(ErrorKind.CONFIGURATION, "API key not configured", "SCHEDULER_API_KEY is not set")
    if not secrets.compare_digest(x_api_key, settings.scheduler_api_key):
        raise AppError(ErrorKind.FORBIDDEN, "Invalid API key", "The x-api-key header does not match")


async def require_placement_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    settings: Settings = Depends(get_settings),
) -> None:
    """Static token (Bearer hoặc X-API-Key) cho ad placement feed."""
    provided = (credentials.credentials if credentials else None) or x_api_key
    expected = settings.placement_api_token
    if not provided or not expected or not secrets.compare_digest(provided, expected):
        raise AppError(ErrorKind.UNAUTHORIZED, "Unauthorized: Invalid API token", "")


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Một AsyncClient cho mỗi request (RSS, article pages, Telegram, analyze API)."""
    async with httpx.AsyncClient(follow_redirects=True) as client:
        yield client


def get_llm_service(settings: Settings = Depends(get_settings)) -> LLMService:
    return LLMService(settings)


def get_media_storage(settings: Settings = Depends(get_settings)) -> MediaStorage:
    return LocalMediaStorage(settings.media_storage_dir, settings.media_public_base_url)


def get_image_throttle(settings: Settings = Depends(get_settings)) -> BatchThrottle:
    return BatchThrottle.from_settings(settings)


def get_image_extractor(
    client: httpx.AsyncClient = Depends(get_http_client),
    throttle: BatchThrottle = Depends(get_image_throttle),
    settings: Settings = Depends(get_settings),
) -> ImageExtractor:
    return ImageExtractor(client, settings, throttle)


def get_telegram_notifier(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> TelegramNotifier:
    return TelegramNotifier(client, settings)
