"""API admin-users: list user (admin), profile của chính mình, set is_admin (admin, ?user_id=)."""
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.db import get_db
from newslatch.dependencies import CurrentUser, get_current_user, require_admin
from newslatch.schemas.users import AdminFlagUpdate, UserProfileOut
from newslatch.services.user_admin_service import get_or_create_profile, list_profiles, parse_user_id, set_admin_flag

router = APIRouter(prefix="/admin-users", tags=["admin"])


@router.get("/profile")
async def get_own_profile(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Mọi user đã đăng nhập; profile chưa có thì được tạo."""
    profile = await get_or_create_profile(db, user.id, user.email)
    return {"success": True, "profile": UserProfileOut.model_validate(profile).model_dump(mode="json")}


@router.get("", dependencies=[Depends(require_admin)])
async def get_users(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    profiles = await list_profiles(db)
    return {
        "success": True,
        "users": [UserProfileOut.model_validate(p).model_dump(mode="json") for p in profiles],
        "count": len(profiles),
    }


@router.put("")
async def put_admin_flag(
    payload: AdminFlagUpdate,
    user_id: Optional[str] = Query(None, description="User UUID"),
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    profile = await set_admin_flag(db, parse_user_id(user_id), payload.is_admin, admin.id)
    return {"success": True, "user": UserProfileOut.model_validate(profile).model_dump(mode="json")}
