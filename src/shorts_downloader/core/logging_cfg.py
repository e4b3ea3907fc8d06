"""JSON logging for the service.

Each record becomes one JSON object on stdout. Fields passed through ``extra=``
(``url``, ``kind``, ``details`` and so on) are lifted into the object so request
context stays machine-readable.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from shorts_downloader.core.config import Settings

# Attributes present on every LogRecord; anything else came in through ``extra=``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}

# Third-party loggers that are chatty at INFO.
_NOISY_LOGGERS: tuple[str, ...] = ("uvicorn.access", "httpx", "multipart")


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON.

    Notes
    -----
    - ``service`` is stamped on every line when given, so mixed container logs
      can be filtered per app.
    - Non-serializable ``extra`` values fall back to ``str()``.
    """

    def __init__(self, service: Optional[str] = None) -> None:
        super().__init__()
        self.service: Optional[str] = service

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        if self.service:
            payload["service"] = self.service
        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS and key not in payload
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def resolve_level(settings: Settings) -> int:
    """Pick the root level: ``DEBUG`` in debug mode, else ``settings.log_level``.

    Unknown level names fall back to ``INFO``.
    """

    if settings.debug:
        return logging.DEBUG
    level: Any = logging.getLevelName(settings.log_level.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(settings: Settings) -> None:
    """Install the JSON handler on the root logger.

    Parameters
    ----------
    settings: Settings
        Provides ``debug``, ``log_level`` and ``app_name``.
    """

    level: int = resolve_level(settings)
    handler: logging.Handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(service=settings.app_name))

    root_logger: logging.Logger = logging.getLogger()
    root_logger.setLevel(level)
    # Replace whatever handlers uvicorn or a previous app instance installed
    for h in list(root_logger.handlers):
        root_logger.removeHandler(h)
    root_logger.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error"):
        logging.getLogger(name).setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level if settings.debug else max(level, logging.WARNING))
