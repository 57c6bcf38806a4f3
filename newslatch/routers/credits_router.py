"""API credits: balance của user hiện tại."""
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.db import get_db
from newslatch.dependencies import CurrentUser, get_current_user
from newslatch.services.credit_service import check_user_credits

router = APIRouter(prefix="/credits", tags=["credits"])


@router.get("")
async def get_credits(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    check = await check_user_credits(db, user.id)
    return {"success": True, **check.to_dict()}
