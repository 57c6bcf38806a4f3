"""AI usage logging: token + cost mỗi lần gọi LLM thành công."""
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import (
    DEFAULT_OPENAI_INPUT_PRICE_PER_1M,
    DEFAULT_OPENAI_OUTPUT_PRICE_PER_1M,
    Settings,
)
from newslatch.logging_config import get_logger
from newslatch.models import AiUsageLog
from newslatch.services.llm_service import LLMResult

logger = get_logger(__name__)


def compute_cost_usd(settings: Settings, prompt_tokens: int, completion_tokens: int) -> Decimal:
    """Cost USD từ token counts (bảng giá static, override bằng OPENAI_*_PRICE_PER_1M)."""
    in_p = (settings.openai_input_price_per_1m or DEFAULT_OPENAI_INPUT_PRICE_PER_1M) / 1_000_000
    out_p = (settings.openai_output_price_per_1m or DEFAULT_OPENAI_OUTPUT_PRICE_PER_1M) / 1_000_000
    return Decimal(str(prompt_tokens * in_p + completion_tokens * out_p)).quantize(Decimal("0.000001"))


async def log_llm_usage(
    db: AsyncSession,
    settings: Settings,
    user_id: Optional[UUID],
    feature: str,
    result: LLMResult,
) -> Optional[AiUsageLog]:
    """
    Ghi một dòng ai_usage_logs từ LLMResult. Không có usage (total_tokens=0) thì bỏ qua.
    Caller đảm bảo commit.
    """
    usage = result.usage or {}
    total = int(usage.get("total_tokens", 0) or 0)
    if total <= 0:
        return None
    prompt_tokens = int(usage.get("prompt_tokens", 0) or 0)
    completion_tokens = int(usage.get("completion_tokens", 0) or 0)
    cost = compute_cost_usd(settings, prompt_tokens, completion_tokens)
    log = AiUsageLog(
        user_id=user_id,
        feature=feature,
        model=result.model or "",
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=total,
        cost_usd=cost,
    )
    db.add(log)
    await db.flush()
    logger.info(
        "ai_usage.logged",
        user_id=str(user_id) if user_id else None,
        feature=feature,
        model=result.model,
        total_tokens=total,
        cost_usd=str(cost),
    )
    return log
