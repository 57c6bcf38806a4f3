"""
OpenAI LLM service: JSON-mode chat completions và image generation.
Tất cả gọi OpenAI nằm trong module này. Output chat luôn là JSON object, caller validate field.
"""
import asyncio
import base64
import json
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, TypeVar

from newslatch.config import Settings
from newslatch.errors import AppError, ErrorKind
from newslatch.logging_config import get_logger

logger = get_logger(__name__)

UsageInfo = Dict[str, int]  # prompt_tokens, completion_tokens, total_tokens
T = TypeVar("T")


class LLMError(AppError):
    """Base cho mọi lỗi LLM (propagate thành 500 trừ khi policy = fallback)."""

    def __init__(self, error: str, details: str = "", kind: ErrorKind = ErrorKind.INTERNAL) -> None:
        super().__init__(kind, error, details)


class LLMNotConfiguredError(LLMError):
    def __init__(self) -> None:
        super().__init__("AI service not configured", "OPENAI_API_KEY is not set", ErrorKind.CONFIGURATION)


class LLMAPIError(LLMError):
    def __init__(self, status: Optional[int], body: str) -> None:
        super().__init__("AI service error", f"OpenAI API error: {status if status is not None else 'network'} - {body}")
        self.status = status
        self.body = body


class LLMEmptyResponseError(LLMError):
    def __init__(self) -> None:
        super().__init__("AI service returned an empty response", "OpenAI returned empty content")


class LLMParseError(LLMError):
    def __init__(self, details: str) -> None:
        super().__init__("Failed to parse AI response", details)


class LLMValidationError(LLMError):
    def __init__(self, details: str) -> None:
        super().__init__("Invalid AI response structure", details)


class LLMFailurePolicy(str, Enum):
    """raise: lỗi LLM thành lỗi request; fallback: caller trả payload thay thế hợp lệ."""

    RAISE = "raise"
    FALLBACK = "fallback"

    @classmethod
    def parse(cls, value: Optional[str]) -> "LLMFailurePolicy":
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.RAISE


def apply_failure_policy(
    policy: LLMFailurePolicy,
    error: LLMError,
    fallback: Callable[[], T],
    feature: str,
) -> T:
    """FALLBACK => log + fallback(); RAISE => raise error."""
    if policy is LLMFailurePolicy.FALLBACK:
        logger.warning("llm.fallback_used", feature=feature, error=error.error, details=error.details)
        return fallback()
    raise error


def strip_code_fence(content: str) -> str:
    """Bỏ ```json ... ``` nếu model vẫn bọc markdown."""
    content = content.strip()
    if content.startswith("```"):
        lines = content.split("\n")
        content = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
    return content.strip()


def parse_json_object(content: str) -> dict[str, Any]:
    if not content or not content.strip():
        raise LLMEmptyResponseError()
    try:
        data = json.loads(strip_code_fence(content))
    except json.JSONDecodeError as e:
        raise LLMParseError(f"The AI generated invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise LLMParseError("The AI response is not a JSON object")
    return data


def require_fields(data: dict[str, Any], fields: dict[str, type | tuple[type, ...]]) -> None:
    """Raise LLMValidationError nếu thiếu field hoặc sai kiểu (vd. {"sections": list})."""
    missing = [name for name, kind in fields.items() if not isinstance(data.get(name), kind)]
    empty = [name for name in fields if isinstance(data.get(name), str) and not data[name].strip()]
    problems = missing + [name for name in empty if name not in missing]
    if problems:
        raise LLMValidationError(f"The AI response is missing required fields ({', '.join(problems)})")


@dataclass
class LLMResult:
    data: dict[str, Any]
    model: str
    usage: UsageInfo = field(default_factory=dict)
    latency_ms: int = 0


class LLMService:
    """Dịch vụ OpenAI dùng chung cho content, variants, landing page, suggestions, image."""

    def __init__(self, settings: Settings) -> None:
        """Khởi tạo từ app config (OPENAI_*)."""
        self.api_key = settings.openai_api_key
        self.model = settings.openai_model
        self.image_model = settings.openai_image_model
        self.image_size = settings.openai_image_size
        self.timeout_seconds = settings.openai_timeout_seconds
        self.max_retries = settings.openai_max_retries
        self.temperature = settings.openai_temperature
        self.max_tokens = settings.openai_max_tokens
        self._client: Any = None

    def _get_client(self):  # noqa: ANN201
        """Lazy init OpenAI client; thiếu key => LLMNotConfiguredError."""
        if not self.api_key:
            raise LLMNotConfiguredError()
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(
                api_key=self.api_key,
                timeout=float(self.timeout_seconds),
                max_retries=self.max_retries,
            )
        return self._client

    def _extract_usage(self, resp: Any) -> UsageInfo:
        """Lấy prompt_tokens, completion_tokens, total_tokens từ response OpenAI."""
        usage = getattr(resp, "usage", None)
        if not usage:
            return {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}
        return {
            "prompt_tokens": getattr(usage, "prompt_tokens", 0) or 0,
            "completion_tokens": getattr(usage, "completion_tokens", 0) or 0,
            "total_tokens": getattr(usage, "total_tokens", 0) or 0,
        }

    async def _call(self, feature: str, fn: Callable[..., Any], **kwargs: Any) -> Any:
        """Gọi SDK (sync) trong thread; map lỗi SDK sang LLMAPIError."""
        import openai

        try:
            return await asyncio.to_thread(fn, **kwargs)
        except openai.APIStatusError as e:
            body = e.response.text if getattr(e, "response", None) is not None else str(e)
            logger.warning("llm.api_error", feature=feature, status=e.status_code, error=body[:500])
            raise LLMAPIError(e.status_code, body[:2000]) from e
        except openai.APIError as e:
            logger.warning("llm.api_error", feature=feature, status=None, error=str(e))
            raise LLMAPIError(None, str(e)) from e

    async def complete_json(
        self,
        system: str,
        user: str,
        feature: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResult:
        """
        Chat completion ở JSON mode; trả về dict đã parse + usage.
        Raises LLMNotConfiguredError / LLMAPIError / LLMEmptyResponseError / LLMParseError.
        """
        client = self._get_client()
        start = time.perf_counter()
        resp = await self._call(
            feature,
            client.chat.completions.create,
            model=self.model,
            messages=[{"role": "system", "content": system}, {"role": "user", "content": user}],
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=max_tokens or self.max_tokens,
            response_format={"type": "json_object"},
        )
        latency_ms = round((time.perf_counter() - start) * 1000)
        choices = getattr(resp, "choices", None) or []
        content = (choices[0].message.content or "") if choices else ""
        try:
            data = parse_json_object(content)
        except LLMError as e:
            logger.warning("llm.invalid_output", feature=feature, model=self.model, latency_ms=latency_ms, error=e.error)
            raise
        usage = self._extract_usage(resp)
        logger.info(
            "llm.success",
            feature=feature,
            model=self.model,
            latency_ms=latency_ms,
            total_tokens=usage.get("total_tokens", 0),
        )
        return LLMResult(data=data, model=self.model, usage=usage, latency_ms=latency_ms)

    async def generate_image(self, prompt: str, feature: str = "content_image") -> bytes:
        """Sinh ảnh từ prompt; trả về bytes ảnh (decode base64)."""
        client = self._get_client()
        kwargs: dict[str, Any] = {"model": self.image_model, "prompt": prompt, "size": self.image_size, "n": 1}
        if self.image_model.startswith("dall-e"):
            kwargs["response_format"] = "b64_json"
        start = time.perf_counter()
        resp = await self._call(feature, client.images.generate, **kwargs)
        latency_ms = round((time.perf_counter() - start) * 1000)
        data = getattr(resp, "data", None) or []
        b64 = getattr(data[0], "b64_json", None) if data else None
        if not b64:
            logger.warning("llm.image_empty", feature=feature, model=self.image_model, latency_ms=latency_ms)
            raise LLMEmptyResponseError()
        logger.info("llm.image_success", feature=feature, model=self.image_model, latency_ms=latency_ms)
        return base64.b64decode(b64)
