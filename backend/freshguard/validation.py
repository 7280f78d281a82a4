from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from freshguard.time_utils import parse_iso_datetime


MAX_BATCH_QUANTITY = 500


class ServiceError(Exception):
    """Base for errors a caller can act on; carries the HTTP status to use."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgumentError(ServiceError):
    """400-level input problem."""

    status_code = 400


class NotFoundError(ServiceError):
    """Referenced entity does not exist (or is not visible to the caller)."""

    status_code = 404


class ConflictError(ServiceError):
    """409-level uniqueness or one-time-use violation."""

    status_code = 409


class ExpiredError(ServiceError):
    """Binding code past its expiry; clients should ask for a fresh code."""

    status_code = 410


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion for values coming off the wire.

    Accepts ints and plain-digit strings. Rejects bools, floats with a
    fractional part, decimals and scientific notation.
    """
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise InvalidArgumentError(f"{field} must be an integer, not a decimal")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise InvalidArgumentError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise InvalidArgumentError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise InvalidArgumentError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise InvalidArgumentError(f"{field} must be an integer")
    raise InvalidArgumentError(f"{field} must be an integer")


def require_positive_int(value: Any, field: str) -> int:
    parsed = coerce_int(value, field)
    if parsed <= 0:
        raise InvalidArgumentError(f"{field} must be a positive integer")
    return parsed


def require_non_negative_int(value: Any, field: str) -> int:
    parsed = coerce_int(value, field)
    if parsed < 0:
        raise InvalidArgumentError(f"{field} must be a non-negative integer")
    return parsed


def require_positive_number(value: Any, field: str) -> float:
    if isinstance(value, bool) or value is None:
        raise InvalidArgumentError(f"{field} must be a positive number")
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"{field} must be a positive number")
    if parsed != parsed or parsed in (float("inf"), float("-inf")) or parsed <= 0:
        raise InvalidArgumentError(f"{field} must be a positive number")
    return parsed


def require_text(value: Any, message: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise InvalidArgumentError(message)
    return text


def optional_text(value: Any) -> str | None:
    return str(value or "").strip() or None


def normalize_choice(value: Any, choices: Iterable[str], field: str, *, default: str | None = None) -> str:
    choices = tuple(choices)
    normalized = str(value if value is not None else (default or "")).strip().lower()
    if not normalized and default is not None:
        normalized = default
    if normalized not in choices:
        if len(choices) == 2:
            allowed = f"{choices[0]} or {choices[1]}"
        else:
            allowed = ", ".join(choices[:-1]) + f", or {choices[-1]}"
        raise InvalidArgumentError(f"{field} must be {allowed}")
    return normalized


def parse_instant(value: Any, field: str) -> datetime | None:
    """datetime or ISO-8601 string -> UTC-naive datetime; empty -> None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return parse_iso_datetime(value.isoformat())
    if isinstance(value, str):
        try:
            return parse_iso_datetime(value)
        except ValueError:
            raise InvalidArgumentError(f"{field} must be an ISO-8601 datetime")
    raise InvalidArgumentError(f"{field} must be an ISO-8601 datetime")
