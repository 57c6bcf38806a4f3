"""
Error taxonomy + envelope duy nhất cho mọi endpoint.
Mọi lỗi trả về dạng {"success": false, "error": str, "details": str}.
Service raise AppError(kind, ...); exception handler trong main chuyển thành JSON.
"""
from enum import Enum
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from newslatch.logging_config import get_logger

logger = get_logger(__name__)

CREDITS_UPGRADE_MESSAGE = (
    "No credits. Please contact support to purchase more credits or upgrade your plan."
)


class ErrorKind(str, Enum):
    """Failure class of a request; each kind maps to one HTTP status."""

    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    UPSTREAM = "upstream"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.INSUFFICIENT_CREDITS: 402,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.METHOD_NOT_ALLOWED: 405,
    ErrorKind.CONFLICT: 409,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.UPSTREAM: 502,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.INTERNAL: 500,
}

_KIND_BY_STATUS = {
    400: ErrorKind.VALIDATION,
    401: ErrorKind.UNAUTHORIZED,
    402: ErrorKind.INSUFFICIENT_CREDITS,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    405: ErrorKind.METHOD_NOT_ALLOWED,
    409: ErrorKind.CONFLICT,
    422: ErrorKind.VALIDATION,
    429: ErrorKind.RATE_LIMITED,
    502: ErrorKind.UPSTREAM,
}


class AppError(Exception):
    """Lỗi nghiệp vụ có kind (-> HTTP status), message ngắn và details."""

    def __init__(
        self,
        kind: ErrorKind,
        error: str,
        details: str = "",
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(error)
        self.kind = kind
        self.error = error
        self.details = details
        # Cho phép propagate status của upstream (vd. analyze API trả 422).
        self.status_code = status_code or kind.status_code


class InsufficientCreditsError(AppError):
    """Balance bằng 0: frontend hiển thị upgrade prompt thay vì lỗi chung."""

    def __init__(self, current_credits: int = 0, action: str = "use this feature") -> None:
        super().__init__(
            ErrorKind.INSUFFICIENT_CREDITS,
            "Insufficient credits",
            f"You need credits to {action}. Current credits: {current_credits}. {CREDITS_UPGRADE_MESSAGE}",
        )
        self.current_credits = current_credits


def error_response(
    kind: ErrorKind,
    error: str,
    details: Any = "",
    status_code: Optional[int] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Single constructor for the error envelope."""
    return JSONResponse(
        status_code=status_code or kind.status_code,
        content={"success": False, "error": error, "details": details if details is not None else ""},
        headers=headers,
    )


def kind_for_status(status_code: int) -> ErrorKind:
    if status_code >= 500:
        return ErrorKind.INTERNAL
    return _KIND_BY_STATUS.get(status_code, ErrorKind.VALIDATION)


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request.app_error",
        path=request.url.path,
        kind=exc.kind.value,
        error=exc.error,
        status=exc.status_code,
    )
    return error_response(exc.kind, exc.error, exc.details, status_code=exc.status_code)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return error_response(
        kind_for_status(exc.status_code),
        detail,
        "",
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return error_response(ErrorKind.VALIDATION, "Invalid request", "; ".join(parts))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request.unhandled_error", path=request.url.path, error=str(exc))
    return error_response(ErrorKind.INTERNAL, "Internal server error", str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    """Gắn handler cho AppError, HTTPException, validation error và lỗi không bắt."""
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
