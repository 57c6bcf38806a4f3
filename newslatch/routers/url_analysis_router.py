"""API analyze-url: submit URL cho external analyze API (1 credit), check job status."""
from typing import Any

import httpx
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings, get_settings
from newslatch.db import get_db
from newslatch.dependencies import CurrentUser, get_current_user, get_http_client
from newslatch.schemas.analysis import AnalyzeUrlRequest
from newslatch.services.url_analysis_service import get_analysis_status, submit_url_analysis

router = APIRouter(prefix="/analyze-url", tags=["url_analysis"])


@router.post("")
async def post_analyze_url(
    payload: AnalyzeUrlRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> Any:
    return await submit_url_analysis(db, user.id, payload.url, client, settings)


@router.get("/status/{job_id}")
async def get_analyze_url_status(
    job_id: str,
    user: CurrentUser = Depends(get_current_user),
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> Any:
    return await get_analysis_status(job_id, client, settings)
