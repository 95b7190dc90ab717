"""
Centralized structured logging for the backend.
Uses Python's standard logging with JSON formatting for production.

Every record carries the request correlation ID when one is active.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    Outputs one JSON object per line for log aggregation tools.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None)
        if request_id and request_id != "-":
            log_data["request_id"] = request_id

        if getattr(record, "extra_data", None):
            log_data["data"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Source location only in debug mode
        if settings.debug:
            log_data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable colored formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.now().strftime("%H:%M:%S")

        request_id = getattr(record, "request_id", None)
        if request_id and request_id != "-":
            request_id_str = f"{self.DIM}[{request_id[:8]}]{self.RESET} "
        else:
            request_id_str = ""

        message = (
            f"{color}[{timestamp}] {record.levelname:8}{self.RESET} "
            f"{request_id_str}{record.name}: {record.getMessage()}"
        )

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            data_str = " | ".join(f"{k}={v}" for k, v in extra_data.items())
            message += f" ({data_str})"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


class StructuredLogger(logging.Logger):
    """
    Logger whose level methods accept keyword context.

        logger.info("Order status promoted", order_id=order.id, new_status="ready")
    """

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
        extra["extra_data"] = kwargs if kwargs else None
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


# Set custom logger class
logging.setLoggerClass(StructuredLogger)


def _resolve_level() -> int:
    if settings.log_level:
        return logging.getLevelName(settings.log_level.upper())
    return logging.DEBUG if settings.debug else logging.INFO


def _use_json_format() -> bool:
    if settings.log_format:
        return settings.log_format.lower() == "json"
    return settings.environment == "production"


def setup_logging() -> None:
    """
    Configure logging for the application.
    Call this once at application startup.
    """
    # Import here to avoid circular imports
    from shared.infrastructure.correlation import CorrelationIdFilter

    log_level = _resolve_level()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(CorrelationIdFilter())

    if _use_json_format():
        formatter = StructuredFormatter()
    else:
        formatter = DevelopmentFormatter()

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.db_echo else logging.WARNING
    )


def get_logger(name: str) -> StructuredLogger:
    """
    Get a logger instance with the given name.

    Usage:
        from shared.config.logging import get_logger
        logger = get_logger(__name__)

        logger.warning("Items missing from order_items", order_id=oid, item_ids=missing)
        logger.error("Failed to send notification", order_number=num, exc_info=True)
    """
    return logging.getLogger(name)  # type: ignore


def mask_phone(phone: str | None) -> str:
    """
    Mask a guest phone number for logging.

    "+56912345678" -> "+569****5678"
    """
    if not phone:
        return "<no-phone>"
    if len(phone) <= 6:
        return "***"
    return f"{phone[:4]}****{phone[-4:]}"


# Pre-configured loggers for common modules
rest_api_logger = get_logger("rest_api")
orders_logger = get_logger("rest_api.orders")
dashboard_logger = get_logger("rest_api.dashboard")
outbox_logger = get_logger("rest_api.outbox")
messaging_logger = get_logger("rest_api.messaging")
auth_logger = get_logger("rest_api.auth")
