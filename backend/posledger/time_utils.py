from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today_iso() -> str:
    """Business date as 'YYYY-MM-DD' (the format every document date uses)."""
    return date.today().isoformat()


def parse_iso_date(value: Optional[str]) -> Optional[str]:
    """
    Normalize a calendar date to 'YYYY-MM-DD'.

    - None / "" -> None
    - "YYYY-MM-DD" is returned unchanged
    - a full ISO datetime ("...T10:00:00Z") is truncated to its date part

    Dates are kept as ISO strings so that lexicographic order is chronological.
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    if "T" in s or " " in s:
        return datetime.fromisoformat(s).date().isoformat()
    return date.fromisoformat(s).isoformat()


def format_display_date(iso_date: Optional[str]) -> str:
    """'2026-10-19' -> '19/10/2026'; empty input gives an empty string."""
    if not iso_date:
        return ""
    return "/".join(reversed(iso_date.split("-")))


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
