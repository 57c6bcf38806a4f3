"""FastAPI application entrypoint."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from newslatch import __version__
from newslatch.config import get_settings
from newslatch.db import engine
from newslatch.errors import register_exception_handlers
from newslatch.logging_config import configure_logging, get_logger
from newslatch.middleware.correlation_id import CorrelationIdMiddleware
from newslatch.middleware.rate_limit import RateLimitMiddleware
from newslatch.routers import (
    ad_variants_router,
    admin_rss_feeds_router,
    admin_users_router,
    ai_content_router,
    api_health_router,
    campaign_suggestions_router,
    campaigns_router,
    content_images_router,
    credits_router,
    landing_page_images_router,
    landing_pages_router,
    paragraph_router,
    placement_router,
    rss_feeds_router,
    scheduled_updates_router,
    url_analysis_router,
)
from newslatch.schemas.common import ErrorResponse

logger = get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown: logging, dispose DB engine."""
    configure_logging()
    logger.info("app_started", version=__version__, env=settings.app_env)
    yield
    await engine.dispose()
    logger.info("app_shutdown")


app = FastAPI(
    title="NewsLatch",
    version=__version__,
    lifespan=lifespan,
    responses={code: {"model": ErrorResponse} for code in (400, 401, 402, 403, 404, 500)},
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)
register_exception_handlers(app)

app.include_router(api_health_router)
app.include_router(campaigns_router)
app.include_router(rss_feeds_router)
app.include_router(ai_content_router)
app.include_router(ad_variants_router)
app.include_router(landing_pages_router)
app.include_router(landing_page_images_router)
app.include_router(paragraph_router)
app.include_router(content_images_router)
app.include_router(credits_router)
app.include_router(scheduled_updates_router)
app.include_router(admin_rss_feeds_router)
app.include_router(admin_users_router)
app.include_router(campaign_suggestions_router)
app.include_router(url_analysis_router)
app.include_router(placement_router)

# Ảnh do LocalMediaStorage lưu, public tại MEDIA_PUBLIC_BASE_URL.
app.mount("/media", StaticFiles(directory=settings.media_storage_dir, check_dir=False), name="media")


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint: app name and version."""
    return {"name": "newslatch", "version": __version__}
