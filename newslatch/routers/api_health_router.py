# Health: /api/healthz (liveness), /api/readyz (readiness). readyz check DB + Redis.
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import get_settings
from newslatch.db import get_db
from newslatch.logging_config import get_logger

router = APIRouter(prefix="/api", tags=["health"])
logger = get_logger(__name__)


@router.get("/healthz")
def healthz() -> dict[str, str]:
    """Liveness: process dang chay. Luon 200."""
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(db: AsyncSession = Depends(get_db)):
    """Readiness: DB va Redis (neu co) san sang. 200 OK, 503 neu loi. Bao them trang thai OpenAI key."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("readyz.db_fail", error=str(e))
        return JSONResponse(status_code=503, content={"status": "unhealthy", "db": "fail"})

    settings = get_settings()
    redis_status = "skipped"
    if settings.redis_url:
        try:
            client = Redis.from_url(settings.redis_url, decode_responses=True)
            try:
                await client.ping()
            finally:
                await client.aclose()
        except (RedisError, OSError) as e:
            logger.warning("readyz.redis_fail", error=str(e))
            return JSONResponse(status_code=503, content={"status": "unhealthy", "redis": "fail"})
        redis_status = "ok"

    # LLM thiếu key không làm fail readiness: CRUD và public landing pages vẫn chạy.
    llm_status = "configured" if settings.openai_api_key else "not_configured"
    return {"status": "ok", "db": "ok", "redis": redis_status, "llm": llm_status}
