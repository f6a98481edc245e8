"""Date helpers. All display dates are in the school's timezone (Asia/Manila)."""

from datetime import date, datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from school_portal.core.config import settings


def school_tz() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def now_manila() -> datetime:
    return datetime.now(school_tz())


def today_manila() -> date:
    return now_manila().date()


def today_manila_ymd() -> str:
    return today_manila().isoformat()


def parse_ymd(value: Any) -> date | None:
    """'YYYY-MM-DD' (or an ISO timestamp) -> date; anything else -> None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _to_school_datetime(value: Any) -> datetime | date | None:
    """
    Normalise a backend value for display.

    Date-only values stay calendar dates. Timestamps without an offset are UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return value
    else:
        text = str(value).strip()
        if len(text) == 10:
            return parse_ymd(text)
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(school_tz())


def parse_timestamp(value: Any) -> datetime | None:
    """Backend date or timestamp as an aware datetime; a bare date is midnight UTC."""
    parsed = _to_school_datetime(value)
    if parsed is None or isinstance(parsed, datetime):
        return parsed
    return datetime(parsed.year, parsed.month, parsed.day, tzinfo=timezone.utc)


def format_date_manila(value: Any) -> str:
    """DD/MM/YYYY, or '-' when empty/invalid."""
    dt = _to_school_datetime(value)
    if dt is None:
        return "-"
    return dt.strftime("%d/%m/%Y")


def format_datetime_manila(value: Any) -> str:
    """DD/MM/YYYY, HH:MM (24h), or '-' when empty/invalid."""
    dt = _to_school_datetime(value)
    if dt is None:
        return "-"
    if not isinstance(dt, datetime):
        dt = datetime(dt.year, dt.month, dt.day)
    return dt.strftime("%d/%m/%Y, %H:%M")


def format_date_for_input(value: Any) -> str:
    """YYYY-MM-DD for date inputs, '' when empty/invalid."""
    dt = _to_school_datetime(value)
    if dt is None:
        return ""
    if isinstance(dt, datetime):
        dt = dt.date()
    return dt.isoformat()
