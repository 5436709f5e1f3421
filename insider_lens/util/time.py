from __future__ import annotations

from datetime import date, datetime, timedelta, timezone


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def days_ago(days: int, *, today: date | None = None) -> date:
    """Calendar date `days` before today (UTC)."""
    base = today or today_utc()
    return base - timedelta(days=int(days))


def parse_iso_date(s: object) -> date | None:
    """Parse YYYY-MM-DD (optionally followed by a time part). Returns None on junk."""
    if s is None:
        return None
    t = str(s).strip()
    if len(t) < 10:
        return None
    try:
        return date.fromisoformat(t[:10])
    except ValueError:
        return None
