from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(?::[0-5]\d)?$")


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_now(tz_name: str) -> datetime:
    """Wall-clock 'now' in the given IANA zone (naive)."""
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


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

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    if dt.tzinfo is None:
        return dt

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_date(value: Optional[str]) -> Optional[date]:
    """'YYYY-MM-DD' -> date. Blank -> None. Raises ValueError on bad input."""
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    # fromisoformat also takes "20250601" on 3.11+
    if not _DATE_RE.match(s):
        raise ValueError(f"Invalid date: {s!r}")
    return date.fromisoformat(s)


def parse_time(value: Optional[str]) -> Optional[time]:
    """
    'HH:MM' -> time. 'HH:MM:SS' is accepted and truncated to the minute,
    so every parsed time lands on a slot boundary.
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    match = _TIME_RE.match(s)
    if not match:
        raise ValueError(f"Invalid time: {s!r}")
    return time(int(match.group(1)), int(match.group(2)))


def format_time(value: Optional[time]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime("%H:%M")


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
