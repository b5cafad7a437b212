"""
Structured logging for the POS backend.

Services log with keyword context instead of formatted strings:

    logger.info("Bill generated", order_id=str(order.id), total=str(order.total))

Production writes one JSON object per line; development prints a compact
coloured line. Every record carries the request's X-Request-ID (added by
CorrelationIdFilter), and outlet/order ids are lifted to the top level of
the JSON so a log pipeline can filter by them.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from pos_shared.config.settings import settings

SERVICE_NAME = "pos_api"

# Context keys copied to the top level of JSON records
INDEXED_KEYS = ("outlet_id", "order_id", "table_id", "item_id")


def _context(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, "extra_data", None) or {}


def _request_id(record: logging.LogRecord) -> str | None:
    request_id = getattr(record, "request_id", None)
    return request_id if request_id and request_id != "-" else None


class StructuredFormatter(logging.Formatter):
    """One JSON document per record, for log aggregation in production."""

    def format(self, record: logging.LogRecord) -> str:
        context = _context(record)
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = _request_id(record)
        if request_id:
            entry["request_id"] = request_id

        for key in INDEXED_KEYS:
            if context.get(key):
                entry[key] = context[key]
        if context:
            entry["data"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if settings.debug:
            entry["source"] = f"{record.pathname}:{record.lineno} in {record.funcName}"

        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Single coloured line: time, level, short request id, logger, message, context."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        parts = [f"{color}{clock} {record.levelname:<8}{self.RESET}"]

        request_id = _request_id(record)
        if request_id:
            parts.append(f"{self.DIM}{request_id[:8]}{self.RESET}")

        parts.append(f"{record.name}: {record.getMessage()}")

        context = _context(record)
        if context:
            parts.append(self.DIM + " ".join(f"{k}={v}" for k, v in context.items()) + self.RESET)

        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class StructuredLogger(logging.Logger):
    """
    Logger accepting keyword context: logger.warning("msg", item_id=..., stock=...).

    Keyword arguments other than exc_info/extra end up in record.extra_data.
    """

    def _log_with_data(
        self,
        level: int,
        msg: str,
        args: tuple,
        exc_info: Any = None,
        extra: dict | None = None,
        **context: Any,
    ) -> None:
        if not self.isEnabledFor(level):
            return
        extra = dict(extra or {})
        extra["extra_data"] = context or None
        self._log(level, msg, args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.DEBUG, msg, args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.INFO, msg, args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.WARNING, msg, args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.ERROR, msg, args, **kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.CRITICAL, msg, args, **kwargs)


logging.setLoggerClass(StructuredLogger)


def setup_logging() -> None:
    """
    Install the stdout handler on the root logger. Called once from the
    application lifespan.
    """
    from pos_shared.infrastructure.correlation import CorrelationIdFilter

    level = logging.DEBUG if settings.debug else logging.INFO
    formatter = StructuredFormatter() if settings.environment == "production" else DevelopmentFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for noisy, noisy_level in (
        ("uvicorn.access", logging.WARNING),
        ("httpx", logging.WARNING),
        ("httpcore", logging.WARNING),
        ("sqlalchemy.engine", logging.WARNING),
    ):
        logging.getLogger(noisy).setLevel(noisy_level)


def get_logger(name: str) -> StructuredLogger:
    """Logger for a module; use with keyword context."""
    logger = logging.getLogger(name)
    if not isinstance(logger, StructuredLogger):
        # Created before setLoggerClass ran (e.g. by a dependency)
        logger.__class__ = StructuredLogger
    return logger  # type: ignore[return-value]


def mask_email(email: str | None) -> str:
    """Mask an email for logs: cashier@outlet.in -> ca***@outlet.in."""
    if not email:
        return "<no-email>"
    local, sep, domain = email.partition("@")
    if not sep:
        return "***@invalid"
    return f"{local[:2] if len(local) > 2 else local[:1]}***@{domain}"


api_logger = get_logger("pos_api")
orders_logger = get_logger("pos_api.orders")
billing_logger = get_logger("pos_api.billing")
inventory_logger = get_logger("pos_api.inventory")

security_audit_logger = get_logger("security.audit")


def audit_auth_event(
    event_type: str,
    user_id: str | None = None,
    email: str | None = None,
    success: bool = True,
    reason: str | None = None,
    ip_address: str | None = None,
    **extra: Any,
) -> None:
    """
    Record a login attempt on the security audit logger.
    Failures go out at WARNING, successes at INFO. Emails are masked.
    """
    log = security_audit_logger.info if success else security_audit_logger.warning
    log(
        f"AUTH_AUDIT: {event_type}",
        event_type=event_type,
        user_id=user_id,
        email=mask_email(email) if email else None,
        success=success,
        reason=reason,
        ip_address=ip_address,
        **extra,
    )
