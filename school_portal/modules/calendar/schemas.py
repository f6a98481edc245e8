"""Schemas for Calendar module."""

from datetime import date
from typing import Literal

from school_portal.shared.schemas import BaseSchema, Record


# --- Grid Schemas ---


class MonthRange(BaseSchema):
    start: date
    end: date
    year: int
    month: int
    days_in_month: int
    month_name: str


class WeekRange(BaseSchema):
    start: date
    end: date
    label: str


class CalendarCell(BaseSchema):
    """Month grid cell; placeholders pad the first and last week."""

    type: Literal["placeholder", "day"]
    date_key: str | None = None
    day_number: int | None = None
    items: list[Record] = []
    holidays: list[Record] = []


class WeekDay(BaseSchema):
    date_key: str
    label: str
    day_number: int
    items: list[Record] = []
    holidays: list[Record] = []


class HourBucket(BaseSchema):
    hour: int
    label: str
    items: list[Record] = []


class CalendarAnchor(BaseSchema):
    """Where a navigation button leads: the month shown and the selected day."""

    month: str
    selected_date: date


class CalendarView(BaseSchema):
    """One rendered page of a calendar (month, week or day)."""

    view: str
    title: str
    start: date
    end: date
    month: str
    selected_date: date
    prev: CalendarAnchor
    next: CalendarAnchor
    today: CalendarAnchor
    items: list[Record] = []
    cells: list[CalendarCell] | None = None
    week_days: list[WeekDay] | None = None
    hours: list[HourBucket] | None = None
    current_time: float | None = None


# --- Schedule Schemas ---


class ScheduleFilters(BaseSchema):
    teachers: list[Record] = []
    branches: list[Record] = []
    rooms: list[Record] = []


class ScheduleCalendarView(CalendarView):
    holidays: list[Record] = []
    filters: ScheduleFilters = ScheduleFilters()
    branch_id: int | None = None
    teacher_id: int | None = None
    room_id: int | None = None


class ClassDetails(BaseSchema):
    class_id: int
    details: Record
    class_page_path: str
