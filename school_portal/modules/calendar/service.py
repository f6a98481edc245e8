"""Service for Calendar module."""

import logging
from datetime import date, datetime
from typing import Any

from school_portal.core.api_client import ApiClient
from school_portal.core.auth import CurrentUser, scoped_branch_id
from school_portal.core.exceptions import AppException
from school_portal.modules.calendar import grid
from school_portal.modules.calendar.grid import ViewMode
from school_portal.modules.calendar.schemas import (
    CalendarAnchor,
    CalendarView,
    ClassDetails,
    ScheduleCalendarView,
    ScheduleFilters,
)
from school_portal.shared.utils.dates import now_manila

logger = logging.getLogger(__name__)


def build_calendar_view(
    view: ViewMode,
    month: str | None,
    selected: date | None,
    items: list[dict[str, Any]],
    now: datetime,
    holiday_dates: set[str] | None = None,
    holidays: list[dict[str, Any]] | None = None,
) -> CalendarView:
    """
    Lay out already-fetched items for the requested page of the calendar.

    Days listed in `holiday_dates` or carrying `holidays` show no items.
    """
    today = now.date()
    selected = selected or today
    if view != ViewMode.MONTH:
        month = grid.month_key(selected)
    month_rng = grid.month_range(month, today)
    month = grid.month_key(month_rng.start)
    start, end = grid.fetch_range(view, month, selected, today)
    by_date = grid.group_by_date(items)
    holidays_by_date = grid.group_by_date(holidays or [])
    holiday_dates = set(holiday_dates or ()) | set(holidays_by_date)

    prev_month, prev_selected = grid.shift(view, month, selected, today, -1)
    next_month, next_selected = grid.shift(view, month, selected, today, 1)

    result = CalendarView(
        view=view.value,
        title="",
        start=start,
        end=end,
        month=month,
        selected_date=selected,
        prev=CalendarAnchor(month=prev_month, selected_date=prev_selected),
        next=CalendarAnchor(month=next_month, selected_date=next_selected),
        today=CalendarAnchor(month=grid.month_key(today), selected_date=today),
        items=items,
    )
    if view == ViewMode.MONTH:
        result.title = month_rng.month_name
        result.cells = grid.month_cells(month_rng, by_date, holidays_by_date, holiday_dates)
    elif view == ViewMode.WEEK:
        week = grid.week_range(selected)
        result.title = week.label
        result.week_days = grid.week_days(week, by_date, holidays_by_date, holiday_dates)
    else:
        result.title = grid.day_long_label(selected)
        result.hours = grid.hour_buckets(items, selected, holiday_dates)
        result.current_time = grid.current_time_marker(selected, now)
    return result


class CalendarService:
    """Service for the class schedule calendar."""

    def __init__(self, api: ApiClient, user: CurrentUser):
        self.api = api
        self.user = user

    async def fetch_holidays(self, start: date, end: date) -> list[dict[str, Any]]:
        """Holidays are decoration on the schedule; a failure shows none."""
        try:
            body = await self.api.get(
                "/holidays", {"start_date": start.isoformat(), "end_date": end.isoformat()}
            )
        except AppException as exc:
            logger.warning("Holiday fetch failed for %s..%s: %s", start, end, exc.message)
            return []
        return body.get("data") or []

    async def get_schedule_view(
        self,
        view: ViewMode,
        month: str | None = None,
        selected: date | None = None,
        branch_id: int | None = None,
        teacher_id: int | None = None,
        room_id: int | None = None,
    ) -> ScheduleCalendarView:
        now = now_manila()
        today = now.date()
        selected = selected or today
        if view != ViewMode.MONTH:
            month = grid.month_key(selected)
        start, end = grid.fetch_range(view, month, selected, today)

        branch_id = scoped_branch_id(self.user, branch_id)
        if branch_id is None:
            # Teachers and rooms belong to a branch
            teacher_id = room_id = None

        body = await self.api.get(
            "/calendar/schedules",
            {
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "branch_id": branch_id,
                "teacher_id": teacher_id,
                "room_id": room_id,
            },
        )
        events = body.get("data") or []
        filters = ScheduleFilters(**(body.get("filters") or {}))
        holidays = await self.fetch_holidays(start, end)

        layout = build_calendar_view(view, month, selected, events, now, holidays=holidays)
        return ScheduleCalendarView(
            **layout.model_dump(),
            holidays=holidays,
            filters=filters,
            branch_id=branch_id,
            teacher_id=teacher_id,
            room_id=room_id,
        )

    async def get_class_details(self, class_id: int) -> ClassDetails:
        body = await self.api.get(f"/classes/{class_id}")
        return ClassDetails(
            class_id=class_id,
            details=body.get("data") or {},
            class_page_path=f"{self.user.role_path}/classes?classId={class_id}",
        )
