"""SQLAlchemy models for NewsLatch."""
from newslatch.models.campaign import Campaign
from newslatch.models.rss_feed import RssFeed
from newslatch.models.ai_generated_item import AiGeneratedItem
from newslatch.models.ad_variant import AdVariant
from newslatch.models.landing_page import LandingPage
from newslatch.models.user_profile import UserProfile
from newslatch.models.ai_usage_log import AiUsageLog

__all__ = [
    "Campaign",
    "RssFeed",
    "AiGeneratedItem",
    "AdVariant",
    "LandingPage",
    "UserProfile",
    "AiUsageLog",
]
