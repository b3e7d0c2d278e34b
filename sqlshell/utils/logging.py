"""Logging helpers for SQLShell.

Library loggers are children of the ``sqlshell`` logger and emit nothing
unless the application configures logging. Statement records carry the
session ID and the (truncated) SQL as extra fields. :func:`configure_logging`
installs one handler on the ``sqlshell`` logger that renders records as JSON
lines tagged with the current correlation ID.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from sqlshell.utils.serializers import to_json

if TYPE_CHECKING:
    from logging import LogRecord

__all__ = (
    "ROOT_LOGGER_NAME",
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_id_var",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
    "set_correlation_id",
    "truncate_sql",
)

ROOT_LOGGER_NAME = "sqlshell"
DEFAULT_SQL_TRUNCATION_LENGTH = 200
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

correlation_id_var: ContextVar[str | None] = ContextVar("sqlshell_correlation_id", default=None)


def set_correlation_id(correlation_id: str | None) -> None:
    """Tag records logged from the current context with ``correlation_id``.

    Pass None to stop tagging.
    """
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


def truncate_sql(sql: str, length: int = DEFAULT_SQL_TRUNCATION_LENGTH) -> str:
    """Collapse whitespace in ``sql`` and cut it to ``length`` characters."""
    sql = " ".join(sql.split())
    if len(sql) <= length:
        return sql
    return f"{sql[:length]}..."


class CorrelationIDFilter(logging.Filter):
    """Copies the context's correlation ID onto each record."""

    def filter(self, record: LogRecord) -> bool:
        if correlation_id := get_correlation_id():
            record.correlation_id = correlation_id  # type: ignore[attr-defined]
        return True


class StructuredFormatter(logging.Formatter):
    """Renders a record as one JSON object.

    The object holds the timestamp, level, logger name and message, the
    correlation ID when there is one, the record's extra fields merged in at
    the top level, and the formatted traceback under ``exception``.
    """

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if correlation_id := getattr(record, "correlation_id", None) or get_correlation_id():
            entry["correlation_id"] = correlation_id
        entry.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return to_json(entry)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the ``sqlshell`` logger, or a child of it.

    ``name`` may be given with or without the ``sqlshell.`` prefix.
    """
    if name is None or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: int | str = logging.INFO,
    *,
    structured: bool = True,
    handler: logging.Handler | None = None,
) -> logging.Logger:
    """Send SQLShell's records to ``handler``.

    Calling this again replaces the handler installed by the previous call.
    Handlers added by the application and the propagation setting of the
    ``sqlshell`` logger are left alone.

    Args:
        level: Level for the ``sqlshell`` logger, as a number or a name.
        structured: Render JSON lines instead of plain text.
        handler: Destination. A stream handler on stderr when omitted.

    Returns:
        The ``sqlshell`` logger.
    """
    logger = get_logger()
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    for installed in [h for h in logger.handlers if getattr(h, "_sqlshell_handler", False)]:
        logger.removeHandler(installed)

    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter() if structured else logging.Formatter(TEXT_FORMAT))
    handler.addFilter(CorrelationIDFilter())
    handler._sqlshell_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger


def log_with_context(logger: logging.Logger, level: int, message: str, **extra_fields: Any) -> None:
    """Log ``message`` with ``extra_fields`` attached for the structured formatter."""
    if logger.isEnabledFor(level):
        logger.log(level, message, extra={"extra_fields": extra_fields})
