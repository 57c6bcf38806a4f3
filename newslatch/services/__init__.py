"""Business logic services."""
from newslatch.services.ai_generate_service import generate_ai_content
from newslatch.services.credit_service import check_user_credits, deduct_user_credit
from newslatch.services.rss_service import get_latest_rss_content

__all__ = [
    "generate_ai_content",
    "check_user_credits",
    "deduct_user_credit",
    "get_latest_rss_content",
]
