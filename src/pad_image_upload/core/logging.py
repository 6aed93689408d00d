"""Logging configuration for the pad image upload service."""

import contextvars
import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from pad_image_upload.core.config import Settings

# Destination key of the upload being processed in the current task
upload_key_context: contextvars.ContextVar[str | None] = contextvars.ContextVar("upload_key", default=None)

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

_SEVERITIES = {logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL}

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class CloudLoggingFormatter(logging.Formatter):
    """Single-line JSON formatter understood by Google Cloud Logging.

    The upload key of the current task and any ``extra`` fields are merged
    into the entry. Tracebacks are kept as one string field.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "severity": logging.getLevelName(record.levelno) if record.levelno in _SEVERITIES else "DEFAULT",
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        upload_key = upload_key_context.get()
        if upload_key:
            entry["upload_key"] = upload_key

        entry.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRIBUTES
        )

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = "".join(traceback.format_exception(*record.exc_info))
            entry["exception_type"] = exc_type.__name__ if exc_type else "Unknown"
            entry["exception_message"] = str(exc_value) if exc_value else ""

        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(settings: "Settings | None" = None) -> None:
    """Send application and uvicorn logs to stdout.

    ``ENV=local`` gets plain text at DEBUG. Every other environment gets
    CloudLoggingFormatter JSON at LOG_LEVEL (INFO when unrecognized).

    Args:
        settings: Settings to configure from, defaults to the module singleton
    """
    if settings is None:
        from pad_image_upload.core.config import settings

    local = settings.ENV == "local"
    if local:
        level = logging.DEBUG
    else:
        level = logging.getLevelName(settings.LOG_LEVEL.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(TEXT_FORMAT) if local else CloudLoggingFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # uvicorn installs its own handlers; route them through ours instead
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.setLevel(level)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.addHandler(handler)
        uvicorn_logger.propagate = False
