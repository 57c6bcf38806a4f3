"""Quản lý user profile: list (admin), profile của chính mình, bật/tắt is_admin."""
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.errors import AppError, ErrorKind
from newslatch.logging_config import get_logger
from newslatch.models import UserProfile

logger = get_logger(__name__)


def parse_user_id(raw: Optional[str]) -> UUID:
    """?user_id= bắt buộc cho PUT: thiếu hoặc sai format => 400."""
    if not raw:
        raise AppError(ErrorKind.VALIDATION, "User ID is required", "Provide the user id as ?user_id=")
    try:
        return UUID(raw)
    except ValueError:
        raise AppError(ErrorKind.VALIDATION, "Invalid user ID", f"'{raw}' is not a valid id") from None


async def list_profiles(db: AsyncSession) -> list[UserProfile]:
    r = await db.execute(select(UserProfile).order_by(UserProfile.created_at.desc(), UserProfile.id))
    return list(r.scalars().all())


async def get_or_create_profile(db: AsyncSession, user_id: UUID, email: Optional[str]) -> UserProfile:
    """Profile của user đăng nhập; chưa có thì tạo (credits mặc định, không phải admin)."""
    profile = await db.get(UserProfile, user_id)
    if profile is not None:
        return profile
    profile = UserProfile(id=user_id, email=email, is_admin=False)
    db.add(profile)
    await db.flush()
    await db.refresh(profile)
    logger.info("user_profile.created", user_id=str(user_id))
    return profile


async def set_admin_flag(db: AsyncSession, user_id: UUID, is_admin: Any, acting_user_id: UUID) -> UserProfile:
    if not isinstance(is_admin, bool):
        raise AppError(ErrorKind.VALIDATION, "is_admin must be a boolean", "Send {\"is_admin\": true|false}")
    profile = await db.get(UserProfile, user_id)
    if profile is None:
        raise AppError(ErrorKind.NOT_FOUND, "User not found", f"No user profile with id {user_id}")
    profile.is_admin = is_admin
    await db.flush()
    logger.info("user_profile.admin_flag_set", target_user_id=str(user_id), is_admin=is_admin,
                acting_user_id=str(acting_user_id))
    return profile
