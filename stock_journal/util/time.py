from __future__ import annotations

from datetime import date, datetime, timezone


def utcnow_iso() -> str:
    """Current UTC time as ISO-8601 string with Z."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def iso_date(dt: datetime) -> str:
    return dt.date().isoformat()


def parse_iso_date(value: object) -> str:
    """Normalize a date / datetime / 'YYYY-MM-DD' string to 'YYYY-MM-DD'.

    Raises ValueError for anything else.
    """
    if isinstance(value, datetime):
        return iso_date(value)
    if isinstance(value, date):
        return value.isoformat()
    s = str(value or "").strip()
    # Accept full timestamps from clients that send Date.toISOString().
    if "T" in s:
        s = s.split("T", 1)[0]
    return date.fromisoformat(s).isoformat()


def utcnow_iso_us() -> str:
    """Like utcnow_iso() but keeps microseconds (for rows that can change within a second)."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")
