"""Structured logging configuration using structlog.

Guest e-mail addresses are masked in everything that reaches the log
stream: structlog event values, stdlib log records, and SQLAlchemy echo
output (which includes bound query parameters).
"""

import logging
import re
import sys
from typing import Any, Optional

import structlog

_EMAIL_PATTERN = re.compile(r"([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})")

# Third-party loggers whose records can carry guest data
REDACTED_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "alembic")


def mask_email(value: str) -> str:
    """Mask e-mail addresses in a string, keeping first letter and domain.

    Example:
        >>> mask_email("booked by john.smith@example.com")
        'booked by j***@example.com'
    """
    return _EMAIL_PATTERN.sub(r"\1***@\2", value)


def _mask_value(value: Any) -> Any:
    return mask_email(value) if isinstance(value, str) else value


class EmailRedactingFilter(logging.Filter):
    """Masks guest e-mail addresses in stdlib log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_email(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(_mask_value(arg) for arg in record.args)
        elif isinstance(record.args, dict):
            record.args = {key: _mask_value(arg) for key, arg in record.args.items()}
        return True


def _redact_emails(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """Structlog processor masking e-mail addresses in event values."""
    return {key: _mask_value(value) for key, value in event_dict.items()}


def _resolve_level(log_level: str) -> int:
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    return level


def setup_logging(log_level: str = "INFO", app_name: Optional[str] = None) -> None:
    """
    Configure JSON logging for the application.

    Args:
        log_level: Minimum level name, e.g. "INFO" or "DEBUG"
        app_name: Bound to every event as ``app`` when given
    """
    level = _resolve_level(log_level)
    email_filter = EmailRedactingFilter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.addFilter(email_filter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for logger_name in REDACTED_LOGGERS:
        logging.getLogger(logger_name).addFilter(email_filter)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _redact_emails,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    if app_name:
        structlog.contextvars.bind_contextvars(app=app_name)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
