"""
Structured logging for the cooperative store, API and CLI.

Loggers accept keyword context (``logger.warning("Write failed", key=key)``).
Production emits one JSON object per line; development renders through
rich so log lines interleave cleanly with the CLI's tables.

Every failure the store swallows (storage writes, malformed blobs, remote
requests, subscriber callbacks) is reported through these loggers.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

from shared.config.settings import settings
from shared.infrastructure.correlation import CorrelationIdFilter

NO_CORRELATION = "-"


def _context(record: logging.LogRecord) -> dict[str, Any]:
    """Keyword context attached by StructuredLogger, or an empty dict."""
    return getattr(record, "extra_data", None) or {}


def _correlation(record: logging.LogRecord) -> str | None:
    correlation_id = getattr(record, "correlation_id", None)
    if not correlation_id or correlation_id == NO_CORRELATION:
        return None
    return correlation_id


class StructuredFormatter(logging.Formatter):
    """One JSON document per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = _correlation(record)
        if correlation_id:
            log_data["correlation_id"] = correlation_id
        context = _context(record)
        if context:
            log_data["data"] = context
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        if settings.debug:
            log_data["source"] = f"{record.filename}:{record.lineno}"
        return json.dumps(log_data, default=str, ensure_ascii=False)


class ContextFormatter(logging.Formatter):
    """
    Message plus keyword context as ``key=value`` pairs.

    Time, level and location are drawn by RichHandler itself.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = f"{record.name}: {record.getMessage()}"
        correlation_id = _correlation(record)
        if correlation_id:
            message = f"[{correlation_id[:8]}] {message}"
        context = _context(record)
        if context:
            message += " (" + ", ".join(f"{k}={v}" for k, v in context.items()) + ")"
        return message


class StructuredLogger(logging.Logger):
    """Logger whose level methods take keyword context instead of ``extra``."""

    def _log_with_data(
        self,
        level: int,
        msg: str,
        args: tuple,
        exc_info: Any = None,
        extra: dict | None = None,
        **kwargs: Any,
    ) -> None:
        if not self.isEnabledFor(level):
            return
        extra = dict(extra or {})
        extra["extra_data"] = kwargs or None
        super()._log(level, msg, args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.DEBUG, msg, args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.INFO, msg, args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.WARNING, msg, args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        exc_info = kwargs.pop("exc_info", None)
        self._log_with_data(logging.ERROR, msg, args, exc_info=exc_info, **kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        exc_info = kwargs.pop("exc_info", None)
        self._log_with_data(logging.CRITICAL, msg, args, exc_info=exc_info, **kwargs)


logging.setLoggerClass(StructuredLogger)


def _build_handler(level: int) -> logging.Handler:
    if settings.environment == "production":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(StructuredFormatter())
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=settings.debug,
            rich_tracebacks=True,
            markup=False,
        )
        handler.setFormatter(ContextFormatter())
    handler.setLevel(level)
    return handler


def setup_logging() -> None:
    """
    Configure the root logger.
    Call once per process (API lifespan, CLI callback).
    """
    level = logging.DEBUG if settings.debug else logging.INFO
    handler = _build_handler(level)
    handler.addFilter(CorrelationIdFilter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for noisy in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """
    Get a logger instance with the given name.

    Usage:
        from shared.config.logging import get_logger
        logger = get_logger(__name__)

        logger.info("Harvest recorded", harvest_id=harvest.id, quantity=12)
        logger.error("Remote sync failed", collection="inventory", exc_info=True)
    """
    return logging.getLogger(name)  # type: ignore


rest_api_logger = get_logger("rest_api")
