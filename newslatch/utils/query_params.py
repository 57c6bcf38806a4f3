"""
Chuẩn hóa query params: bool dạng string, enum filter, số nguyên dương.
FastAPI nhận ?force_update=false dưới dạng str "false"; `if force_update:` sẽ thành True.
"""
from collections.abc import Iterable
from uuid import UUID

from newslatch.errors import AppError, ErrorKind

_TRUE_VALUES = ("true", "1", "yes")


def ensure_bool_query(value: bool | str | None) -> bool:
    """
    Query value (bool | str | None) -> bool.
    Chỉ True khi value là True hoặc "true"/"1"/"yes" (không phân biệt hoa thường).
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def ensure_choice_query(name: str, value: str | None, choices: Iterable[str], default: str) -> str:
    """Giá trị filter phải thuộc choices; None/"" => default. Sai => 400."""
    if value is None or not str(value).strip():
        return default
    normalized = str(value).strip()
    allowed = tuple(choices)
    if normalized not in allowed:
        raise AppError(
            ErrorKind.VALIDATION,
            f"Invalid {name}",
            f"{name} must be one of: {', '.join(allowed)}",
        )
    return normalized


def ensure_positive_int_query(name: str, value: str | int | None, default: int, maximum: int | None = None) -> int:
    """Parse số nguyên >= 1 (page, limit). maximum: giới hạn trên nếu có."""
    if value is None or str(value).strip() == "":
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        raise AppError(ErrorKind.VALIDATION, f"Invalid {name}", f"{name} must be an integer") from None
    if number < 1 or (maximum is not None and number > maximum):
        upper = f" and <= {maximum}" if maximum is not None else ""
        raise AppError(ErrorKind.VALIDATION, f"Invalid {name}", f"{name} must be >= 1{upper}")
    return number


def ensure_uuid_query(name: str, value: str | None, missing_error: str | None = None) -> UUID:
    """Id bắt buộc trong query (?campaignId=, ?ai_item_id=). Thiếu hoặc sai format => 400."""
    if value is None or not str(value).strip():
        raise AppError(ErrorKind.VALIDATION, missing_error or f"Missing {name}", f"{name} query parameter is required")
    try:
        return UUID(str(value).strip())
    except ValueError:
        raise AppError(ErrorKind.VALIDATION, f"Invalid {name}", f"{name} must be a valid id") from None
