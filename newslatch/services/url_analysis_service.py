"""
Proxy tới external analyze API (trả phí): submit URL -> job, check job status.
Submit thành công mới trừ 1 credit; lỗi upstream giữ nguyên status code.
"""
from typing import Any, Optional
from urllib.parse import urlparse
from uuid import UUID

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings
from newslatch.errors import AppError, ErrorKind, InsufficientCreditsError, kind_for_status
from newslatch.logging_config import get_logger
from newslatch.services.credit_service import deduct_user_credit, require_credits

logger = get_logger(__name__)

ACTION = "analyze URLs"
ANALYZE_PATH = "/api/v1/analyze"
STATUS_PATH = "/api/v1/analyze/status/{job_id}"


class AnalyzeApiClient:
    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        if not settings.analyze_api_base_url or not settings.analyze_api_key:
            raise AppError(
                ErrorKind.CONFIGURATION,
                "API key not configured",
                "ANALYZE_API_BASE_URL and ANALYZE_API_KEY must be set",
            )
        self.client = client
        self.base_url = settings.analyze_api_base_url.rstrip("/")
        self.api_key = settings.analyze_api_key
        self.timeout = settings.analyze_api_timeout_seconds

    async def _request(self, method: str, path: str, failure_message: str, json: Optional[dict] = None) -> Any:
        try:
            resp = await self.client.request(
                method,
                f"{self.base_url}{path}",
                headers={"X-API-Key": self.api_key},
                json=json,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("analyze_api.unreachable", path=path, error=str(e))
            raise AppError(ErrorKind.UPSTREAM, failure_message, str(e)) from e
        try:
            data = resp.json()
        except ValueError:
            data = {"raw": resp.text[:500]}
        if resp.status_code >= 400:
            logger.warning("analyze_api.error", path=path, status=resp.status_code)
            upstream_error = data.get("error") if isinstance(data, dict) else None
            raise AppError(
                kind_for_status(resp.status_code),
                upstream_error or failure_message,
                str(data)[:1000],
                status_code=resp.status_code,
            )
        return data

    async def submit(self, url: str) -> Any:
        return await self._request("POST", ANALYZE_PATH, "Failed to submit analysis request", json={"url": url})

    async def status(self, job_id: str) -> Any:
        return await self._request("GET", STATUS_PATH.format(job_id=job_id), "Failed to check job status")


def validate_analysis_url(url: Optional[str]) -> str:
    if not url or not url.strip():
        raise AppError(ErrorKind.VALIDATION, "URL is required", "Provide the url to analyze")
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise AppError(ErrorKind.VALIDATION, "Invalid URL format", f"'{url}' is not a valid http(s) URL")
    return url.strip()


async def submit_url_analysis(
    db: AsyncSession,
    user_id: UUID,
    url: Optional[str],
    client: httpx.AsyncClient,
    settings: Settings,
) -> dict[str, Any]:
    await require_credits(db, user_id, ACTION)
    target = validate_analysis_url(url)
    api = AnalyzeApiClient(client, settings)
    job = await api.submit(target)
    deduction = await deduct_user_credit(db, user_id)
    if not deduction.success:
        raise InsufficientCreditsError(deduction.remaining_credits, ACTION)
    logger.info("analyze_url.submitted", user_id=str(user_id), url=target, credits_remaining=deduction.remaining_credits)
    body = dict(job) if isinstance(job, dict) else {"job": job}
    body["credits_remaining"] = deduction.remaining_credits
    return body


async def get_analysis_status(job_id: str, client: httpx.AsyncClient, settings: Settings) -> Any:
    if not job_id or not job_id.strip():
        raise AppError(ErrorKind.VALIDATION, "Job ID is required", "")
    api = AnalyzeApiClient(client, settings)
    return await api.status(job_id.strip())
