"""Schemas for Holidays module."""

from datetime import date

from pydantic import BaseModel

from school_portal.modules.calendar.schemas import CalendarView


class HolidayForm(BaseModel):
    """Add/edit holiday modal. Fields arrive as typed by the user."""

    name: str | None = None
    holiday_date: str | None = None
    branch_id: int | str | None = None
    description: str | None = None
    # Only custom holidays can be edited; national ones come from the backend calendar
    source: str = "custom"


class HolidayCalendarView(CalendarView):
    default_add_date: date
