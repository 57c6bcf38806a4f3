"""API routers."""
from newslatch.routers.ad_variants_router import router as ad_variants_router
from newslatch.routers.admin_rss_feeds_router import router as admin_rss_feeds_router
from newslatch.routers.admin_users_router import router as admin_users_router
from newslatch.routers.ai_content_router import router as ai_content_router
from newslatch.routers.api_health_router import router as api_health_router
from newslatch.routers.campaign_suggestions_router import router as campaign_suggestions_router
from newslatch.routers.campaigns_router import router as campaigns_router
from newslatch.routers.content_images_router import router as content_images_router
from newslatch.routers.credits_router import router as credits_router
from newslatch.routers.landing_page_images_router import router as landing_page_images_router
from newslatch.routers.landing_pages_router import router as landing_pages_router
from newslatch.routers.paragraph_router import router as paragraph_router
from newslatch.routers.placement_router import router as placement_router
from newslatch.routers.rss_feeds_router import router as rss_feeds_router
from newslatch.routers.scheduled_updates_router import router as scheduled_updates_router
from newslatch.routers.url_analysis_router import router as url_analysis_router

__all__ = [
    "ad_variants_router",
    "admin_rss_feeds_router",
    "admin_users_router",
    "ai_content_router",
    "api_health_router",
    "campaign_suggestions_router",
    "campaigns_router",
    "content_images_router",
    "credits_router",
    "landing_page_images_router",
    "landing_pages_router",
    "paragraph_router",
    "placement_router",
    "rss_feeds_router",
    "scheduled_updates_router",
    "url_analysis_router",
]
