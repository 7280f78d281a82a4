from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

from flask import current_app, has_app_context


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock, UTC-naive."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


class FixedClock:
    """
    Clock pinned to a single instant until moved explicitly.

    Used by tests and by anything that needs reproducible classification
    (e.g. re-running a report "as of" a past instant).
    """

    def __init__(self, instant: datetime):
        self._instant = _to_naive_utc(instant)

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = _to_naive_utc(instant)

    def advance(self, **kwargs) -> datetime:
        self._instant = self._instant + timedelta(**kwargs)
        return self._instant


_default_clock = SystemClock()


def get_clock() -> Clock:
    """Clock installed on the current app, or the wall clock outside one."""
    if has_app_context():
        return current_app.extensions.get("clock", _default_clock)
    return _default_clock


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return get_clock().now()


def add_days(instant: datetime, days: int) -> datetime:
    """Calendar-day arithmetic in UTC; the time of day is preserved."""
    return _to_naive_utc(instant) + timedelta(days=days)


def _to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    return _to_naive_utc(datetime.fromisoformat(s))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
