"""Handlers package - request boundary for reservation operations."""

from datetime import datetime, timezone
from typing import Any

from src.services.errors import (
    InvalidReservationError,
    ReservationConflictError,
    ReservationNotFoundError,
)

# Error kind -> HTTP-style status code a web layer should answer with
ERROR_STATUS_CODES = {
    "not_found": 404,
    "validation": 400,
    "conflict": 409,
    "internal": 500,
}


def classify_error(exc: BaseException) -> str:
    """Map an exception to its reported error kind."""
    if isinstance(exc, ReservationNotFoundError):
        return "not_found"
    if isinstance(exc, ReservationConflictError):
        return "conflict"
    if isinstance(exc, InvalidReservationError):
        return "validation"
    return "internal"


def format_error_message(kind: str, message: str) -> str:
    """
    Format the caller-facing error text.

    Internal errors are prefixed so callers can tell them apart from
    rejections of their own input.

    Example:
        >>> format_error_message("internal", "connection reset")
        'Request failed: connection reset'
    """
    if kind == "internal":
        return f"Request failed: {message}"
    return message


def error_response(exc: BaseException) -> dict[str, Any]:
    """Build a serializable error body for an exception."""
    kind = classify_error(exc)
    return {
        "error": format_error_message(kind, str(exc)),
        "kind": kind,
        "status_code": ERROR_STATUS_CODES[kind],
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
