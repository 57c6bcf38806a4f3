"""API scheduled-updates: external cron gọi với x-api-key, mỗi lần một user."""
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings, get_settings
from newslatch.db import get_db
from newslatch.dependencies import (
    get_http_client,
    get_image_extractor,
    get_llm_service,
    get_telegram_notifier,
    require_scheduler_key,
)
from newslatch.schemas.scheduler import ScheduledUpdateResponse
from newslatch.services.image_extractor import ImageExtractor
from newslatch.services.llm_service import LLMService
from newslatch.services.scheduled_update_service import run_scheduled_update
from newslatch.services.telegram_service import TelegramNotifier
from newslatch.utils.query_params import ensure_bool_query, ensure_uuid_query

router = APIRouter(tags=["scheduler"], dependencies=[Depends(require_scheduler_key)])


@router.get("/scheduled-updates", response_model=ScheduledUpdateResponse)
async def get_scheduled_updates(
    user_id: Optional[str] = Query(None),
    force_update: Optional[str] = Query(None, description="true => bỏ qua check updates_hour"),
    db: AsyncSession = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
    llm: LLMService = Depends(get_llm_service),
    extractor: ImageExtractor = Depends(get_image_extractor),
    notifier: TelegramNotifier = Depends(get_telegram_notifier),
    settings: Settings = Depends(get_settings),
) -> ScheduledUpdateResponse:
    uid = ensure_uuid_query("user_id", user_id, missing_error="Missing user_id")
    return await run_scheduled_update(
        db,
        uid,
        ensure_bool_query(force_update),
        client=client,
        llm=llm,
        extractor=extractor,
        notifier=notifier,
        settings=settings,
    )
