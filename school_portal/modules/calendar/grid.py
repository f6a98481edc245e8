"""Calendar grid arithmetic shared by the schedule and holiday calendars.

Weeks run Sunday to Saturday. Day view shows hour rows 1 AM .. 11 PM.
"""

import calendar as _calendar
from collections import defaultdict
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta
from enum import StrEnum
from typing import Any, Iterable

from school_portal.modules.calendar.schemas import (
    CalendarCell,
    HourBucket,
    MonthRange,
    WeekDay,
    WeekRange,
)

DAY_LABELS = ["SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT"]
HOURS = list(range(1, 24))


class ViewMode(StrEnum):
    MONTH = "month"
    WEEK = "week"
    DAY = "day"


def _sunday_index(d: date) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return (d.weekday() + 1) % 7


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def month_range(month: str | None, today: date) -> MonthRange:
    """Bounds of 'YYYY-MM'; missing, malformed or out-of-range input means the current month."""
    year, month_num = today.year, today.month
    if month:
        try:
            y, m = (int(part) for part in month.split("-")[:2])
            date(y, m, 1)
        except ValueError:
            pass
        else:
            year, month_num = y, m
    days = _calendar.monthrange(year, month_num)[1]
    start = date(year, month_num, 1)
    return MonthRange(
        start=start,
        end=date(year, month_num, days),
        year=year,
        month=month_num,
        days_in_month=days,
        month_name=start.strftime("%B %Y"),
    )


def week_range(d: date) -> WeekRange:
    start = d - timedelta(days=_sunday_index(d))
    end = start + timedelta(days=6)
    label = f"{start.strftime('%b')} {start.day} – {end.strftime('%b')} {end.day}, {end.year}"
    return WeekRange(start=start, end=end, label=label)


def day_label(d: date) -> str:
    """'SUN 18'"""
    return f"{DAY_LABELS[_sunday_index(d)]} {d.day}"


def day_long_label(d: date) -> str:
    """'Sunday, October 18, 2026'"""
    return f"{d.strftime('%A')}, {d.strftime('%B')} {d.day}, {d.year}"


def _split_time(value: str) -> tuple[int, int] | None:
    parts = str(value).split(":")
    try:
        return int(parts[0]), int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        return None


def format_time(value: str | None) -> str:
    """'14:05[:00]' -> '2:05 PM'; missing -> 'TBD'."""
    if not value:
        return "TBD"
    split = _split_time(value)
    if split is None:
        return "TBD"
    hours, minutes = split
    period = "PM" if hours >= 12 else "AM"
    display = hours % 12 or 12
    return f"{display}:{minutes:02d} {period}"


def format_hour(hour: int) -> str:
    if hour == 0:
        return "12 AM"
    if hour == 12:
        return "12 PM"
    return f"{hour - 12} PM" if hour > 12 else f"{hour} AM"


def start_time_to_hour(value: str | None) -> float:
    if not value:
        return 0
    split = _split_time(value)
    if split is None:
        return 0
    hours, minutes = split
    return hours + minutes / 60


def fetch_range(view: ViewMode, month: str | None, selected: date, today: date) -> tuple[date, date]:
    """Inclusive date range the backend must be asked for."""
    if view == ViewMode.MONTH:
        rng = month_range(month, today)
        return rng.start, rng.end
    if view == ViewMode.WEEK:
        rng = week_range(selected)
        return rng.start, rng.end
    return selected, selected


def shift(view: ViewMode, month: str | None, selected: date, today: date, step: int) -> tuple[str, date]:
    """
    Move one page back (step=-1) or forward (step=1).

    Returns the new (month 'YYYY-MM', selected date). Month view rolls the
    year over at January/December. Paging past the first or last
    representable date stays put.
    """
    if view == ViewMode.MONTH:
        rng = month_range(month, today)
        index = rng.year * 12 + (rng.month - 1) + step
        year, month_index = divmod(index, 12)
        if not MINYEAR <= year <= MAXYEAR:
            return month_key(rng.start), selected
        return f"{year:04d}-{month_index + 1:02d}", selected
    days = 7 if view == ViewMode.WEEK else 1
    try:
        new_selected = selected + timedelta(days=days * step)
    except OverflowError:
        new_selected = selected
    return month_key(new_selected), new_selected


def group_by_date(items: Iterable[dict[str, Any]], key: str = "date") -> dict[str, list[dict[str, Any]]]:
    grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for item in items:
        value = item.get(key)
        if value:
            grouped[str(value)[:10]].append(item)
    return dict(grouped)


def _day_items(
    key: str,
    items_by_date: dict[str, list[dict[str, Any]]],
    holidays_by_date: dict[str, list[dict[str, Any]]],
    holiday_dates: set[str],
) -> list[dict[str, Any]]:
    if key in holiday_dates or holidays_by_date.get(key):
        return []
    return items_by_date.get(key, [])


def month_cells(
    rng: MonthRange,
    items_by_date: dict[str, list[dict[str, Any]]],
    holidays_by_date: dict[str, list[dict[str, Any]]] | None = None,
    holiday_dates: set[str] | None = None,
) -> list[CalendarCell]:
    """Month grid; a holiday replaces that day's items with its holidays."""
    holidays_by_date = holidays_by_date or {}
    holiday_dates = holiday_dates or set()
    cells = [CalendarCell(type="placeholder") for _ in range(_sunday_index(rng.start))]
    for day in range(1, rng.days_in_month + 1):
        key = date(rng.year, rng.month, day).isoformat()
        cells.append(
            CalendarCell(
                type="day",
                date_key=key,
                day_number=day,
                items=_day_items(key, items_by_date, holidays_by_date, holiday_dates),
                holidays=holidays_by_date.get(key, []),
            )
        )
    while len(cells) % 7:
        cells.append(CalendarCell(type="placeholder"))
    return cells


def week_days(
    rng: WeekRange,
    items_by_date: dict[str, list[dict[str, Any]]],
    holidays_by_date: dict[str, list[dict[str, Any]]] | None = None,
    holiday_dates: set[str] | None = None,
) -> list[WeekDay]:
    holidays_by_date = holidays_by_date or {}
    holiday_dates = holiday_dates or set()
    days = []
    for offset in range(7):
        d = rng.start + timedelta(days=offset)
        key = d.isoformat()
        days.append(
            WeekDay(
                date_key=key,
                label=DAY_LABELS[offset],
                day_number=d.day,
                items=_day_items(key, items_by_date, holidays_by_date, holiday_dates),
                holidays=holidays_by_date.get(key, []),
            )
        )
    return days


def hour_buckets(
    items: Iterable[dict[str, Any]],
    selected: date,
    holiday_dates: set[str] | None = None,
    time_key: str = "start_time",
) -> list[HourBucket]:
    """Bucket the selected day's items by start hour; a holiday empties the day."""
    buckets: dict[int, list[dict[str, Any]]] = {hour: [] for hour in HOURS}
    key = selected.isoformat()
    if not holiday_dates or key not in holiday_dates:
        for item in items:
            if str(item.get("date") or "")[:10] != key:
                continue
            hour = int(start_time_to_hour(item.get(time_key)))
            if hour in buckets:
                buckets[hour].append(item)
    return [HourBucket(hour=hour, label=format_hour(hour), items=buckets[hour]) for hour in HOURS]


def current_time_marker(selected: date, now: datetime) -> float | None:
    """Fractional hour for the 'now' line; only drawn on today's day view."""
    if selected != now.date():
        return None
    return now.hour + now.minute / 60
