"""
Credit ledger: check + atomic decrement balance của user.
Decrement là một câu UPDATE có điều kiện (credits > 0) RETURNING credits,
nên hai request đồng thời không thể cùng tiêu credit cuối cùng.
"""
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.db import utcnow
from newslatch.errors import InsufficientCreditsError
from newslatch.logging_config import get_logger
from newslatch.models import UserProfile

logger = get_logger(__name__)


@dataclass
class CreditCheck:
    has_credits: bool
    current_credits: int

    def to_dict(self) -> dict:
        return {"hasCredits": self.has_credits, "currentCredits": self.current_credits}


@dataclass
class CreditDeduction:
    success: bool
    remaining_credits: int

    def to_dict(self) -> dict:
        return {"success": self.success, "remainingCredits": self.remaining_credits}


async def get_credit_balance(db: AsyncSession, user_id: UUID) -> int:
    """Balance hiện tại; không có profile => 0."""
    r = await db.execute(select(UserProfile.credits).where(UserProfile.id == user_id))
    value = r.scalar_one_or_none()
    return int(value or 0)


async def check_user_credits(db: AsyncSession, user_id: UUID) -> CreditCheck:
    credits = await get_credit_balance(db, user_id)
    return CreditCheck(has_credits=credits > 0, current_credits=credits)


async def require_credits(db: AsyncSession, user_id: UUID, action: str) -> CreditCheck:
    """Raise InsufficientCreditsError (402) khi balance = 0."""
    check = await check_user_credits(db, user_id)
    if not check.has_credits:
        logger.info("credits.insufficient", user_id=str(user_id), action=action)
        raise InsufficientCreditsError(check.current_credits, action)
    return check


async def deduct_user_credit(db: AsyncSession, user_id: UUID) -> CreditDeduction:
    """
    UPDATE profiles SET credits = credits - 1 WHERE id = :id AND credits > 0 RETURNING credits.
    Không có row nào match => success=False và balance không đổi.
    """
    stmt = (
        update(UserProfile)
        .where(UserProfile.id == user_id, UserProfile.credits > 0)
        .values(credits=UserProfile.credits - 1, updated_at=utcnow())
        .returning(UserProfile.credits)
        .execution_options(synchronize_session=False)
    )
    r = await db.execute(stmt)
    remaining = r.scalar_one_or_none()
    if remaining is None:
        current = await get_credit_balance(db, user_id)
        logger.info("credits.deduct_rejected", user_id=str(user_id), current_credits=current)
        return CreditDeduction(success=False, remaining_credits=current)
    logger.info("credits.deducted", user_id=str(user_id), remaining_credits=remaining)
    return CreditDeduction(success=True, remaining_credits=int(remaining))
