"""Structured logging configuration (structlog)."""
import logging
import sys
from typing import Any, Optional

import structlog

from newslatch import __version__
from newslatch.config import get_settings

SERVICE_NAME = "newslatch"

# Thư viện log từng HTTP call ở INFO (feed, article, OpenAI); chỉ giữ WARNING trở lên.
NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def _add_service_info(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    return event_dict


def configure_logging() -> None:
    """Configure structlog (JSON, console khi APP_ENV=local) và stdlib logging."""
    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.app_env == "local"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _add_service_info,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_user_context(user_id: Any, campaign_id: Optional[Any] = None) -> None:
    """Gắn user (và campaign nếu có) vào log context của request hiện tại."""
    values = {"user_id": str(user_id)}
    if campaign_id is not None:
        values["campaign_id"] = str(campaign_id)
    structlog.contextvars.bind_contextvars(**values)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound logger for the given module name."""
    return structlog.get_logger(name)
