"""Service for Holidays module."""

from datetime import date
from typing import Any

from school_portal.core.api_client import ApiClient
from school_portal.core.auth import CurrentUser
from school_portal.core.exceptions import FormValidationError, UpstreamError, ValidationError
from school_portal.modules.calendar import grid
from school_portal.modules.calendar.grid import ViewMode
from school_portal.modules.calendar.service import build_calendar_view
from school_portal.modules.holidays.schemas import HolidayCalendarView, HolidayForm
from school_portal.shared.utils.dates import now_manila, parse_ymd
from school_portal.shared.utils.text import clean_text

CUSTOM_SOURCE = "custom"


def default_add_date(view: ViewMode, month: str | None, selected: date, today: date) -> date:
    """Date prefilled by the 'Add holiday' button for the visible page."""
    if view == ViewMode.DAY:
        return selected
    if view == ViewMode.WEEK:
        return grid.week_range(selected).start
    return grid.month_range(month, today).start


class HolidayService:
    """Service for managing custom holidays."""

    def __init__(self, api: ApiClient, user: CurrentUser):
        self.api = api
        self.user = user

    async def get_calendar(
        self, view: ViewMode, month: str | None = None, selected: date | None = None
    ) -> HolidayCalendarView:
        now = now_manila()
        today = now.date()
        selected = selected or today
        if view != ViewMode.MONTH:
            month = grid.month_key(selected)
        start, end = grid.fetch_range(view, month, selected, today)

        body = await self.api.get(
            "/holidays", {"start_date": start.isoformat(), "end_date": end.isoformat()}
        )
        holidays = body.get("data") or []

        layout = build_calendar_view(view, month, selected, holidays, now)
        return HolidayCalendarView(
            **layout.model_dump(),
            default_add_date=default_add_date(view, layout.month, selected, today),
        )

    def build_payload(self, form: HolidayForm) -> dict[str, Any]:
        errors: dict[str, str] = {}
        name = clean_text(form.name)
        if not name:
            errors["name"] = "Name is required"
        holiday_date = parse_ymd(form.holiday_date)
        if not form.holiday_date:
            errors["holiday_date"] = "Date is required"
        elif holiday_date is None:
            errors["holiday_date"] = "Date must be YYYY-MM-DD"
        branch_id = None
        if form.branch_id not in (None, ""):
            try:
                branch_id = int(form.branch_id)
            except ValueError:
                errors["branch_id"] = "Invalid branch"
        if errors:
            raise FormValidationError(errors)

        payload: dict[str, Any] = {"name": name, "holiday_date": holiday_date.isoformat()}
        description = clean_text(form.description)
        if description:
            payload["description"] = description
        if self.user.is_superadmin:
            # None means the holiday applies to every branch
            payload["branch_id"] = branch_id
        return payload

    @staticmethod
    def _ensure_custom(source: str | None) -> None:
        if source != CUSTOM_SOURCE:
            raise ValidationError("Only custom holidays can be changed", field="source")

    async def _submit(self, method: str, endpoint: str, payload: dict[str, Any] | None = None) -> dict:
        try:
            body = await self.api.request(method, endpoint, json=payload)
        except UpstreamError as exc:
            raise FormValidationError({"submit": exc.message}, message=exc.message) from exc
        return body.get("data") or {}

    async def create_holiday(self, form: HolidayForm) -> dict:
        return await self._submit("POST", "/holidays", self.build_payload(form))

    async def update_holiday(self, holiday_id: int, form: HolidayForm) -> dict:
        self._ensure_custom(form.source)
        return await self._submit("PUT", f"/holidays/custom/{holiday_id}", self.build_payload(form))

    async def delete_holiday(self, holiday_id: int, source: str = CUSTOM_SOURCE) -> None:
        self._ensure_custom(source)
        await self._submit("DELETE", f"/holidays/custom/{holiday_id}")
