"""
Structured logging for the REST API.

Keyword arguments passed to a logger call are kept as structured data:

    logger.info("Table closed", table_number="12", consolidated_order_id=7)

Order context keys (table_number, order_id, session_id) are promoted to
top-level fields in JSON output so one dining visit can be followed across
submission, kitchen and closure. The request id is attached by
CorrelationIdFilter (shared.infrastructure.correlation).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings

# Keys lifted out of the structured payload into the top-level record
CONTEXT_KEYS = ("table_number", "order_id", "session_id")


def _split_context(extra_data: dict[str, Any] | None) -> tuple[dict[str, Any], dict[str, Any]]:
    if not extra_data:
        return {}, {}
    context = {k: extra_data[k] for k in CONTEXT_KEYS if extra_data.get(k) is not None}
    rest = {k: v for k, v in extra_data.items() if k not in context}
    return context, rest


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, for production log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        context, data = _split_context(getattr(record, "extra_data", None))
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            **context,
        }

        request_id = getattr(record, "request_id", "-")
        if request_id != "-":
            payload["request_id"] = request_id
        if data:
            payload["data"] = data
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Readable single-line output with the table/order context up front."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        context, data = _split_context(getattr(record, "extra_data", None))

        tags = []
        if "table_number" in context:
            tags.append(f"table={context['table_number']}")
        if "order_id" in context:
            tags.append(f"order=#{context['order_id']}")
        request_id = getattr(record, "request_id", "-")
        if request_id != "-":
            tags.append(f"req={request_id[:8]}")

        line = (
            f"{datetime.fromtimestamp(record.created):%H:%M:%S} "
            f"{color}{record.levelname:<7}{self.RESET} {record.name}"
        )
        if tags:
            line += f" [{' '.join(tags)}]"
        line += f" {record.getMessage()}"
        if data:
            line += " " + " ".join(f"{k}={v}" for k, v in data.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger(logging.Logger):
    """Logger whose keyword arguments are collected into record.extra_data."""

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
        if extra is None:
            extra = {}
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


# Must run before any module-level logger below is created
logging.setLoggerClass(StructuredLogger)


def setup_logging() -> None:
    """Install the stdout handler on the root logger. Called from the app lifespan."""
    # Imported here: correlation imports this module
    from shared.infrastructure.correlation import CorrelationIdFilter

    level = logging.DEBUG if settings.debug else logging.INFO
    formatter = StructuredFormatter() if settings.environment == "production" else DevelopmentFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers[:] = [handler]

    for noisy, noisy_level in (
        ("uvicorn.access", logging.WARNING),
        ("sqlalchemy.engine", logging.WARNING),
        ("httpx", logging.WARNING),
    ):
        logging.getLogger(noisy).setLevel(noisy_level)


def get_logger(name: str) -> StructuredLogger:
    """
    Logger for a module:

        logger = get_logger(__name__)
        logger.info("Order submitted", order_id=42, table_number="12")
    """
    return logging.getLogger(name)  # type: ignore


# Area loggers
rest_api_logger = get_logger("rest_api")
orders_logger = get_logger("rest_api.orders")
kitchen_logger = get_logger("rest_api.kitchen")
tables_logger = get_logger("rest_api.tables")
