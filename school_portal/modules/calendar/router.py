"""API for the class schedule calendar (Superadmin/Admin)."""

from datetime import date

from fastapi import APIRouter, Depends, Query

from school_portal.core.api_client import ApiClient, get_api_client
from school_portal.core.auth.dependencies import AdminUser
from school_portal.modules.calendar.grid import ViewMode
from school_portal.modules.calendar.schemas import ClassDetails, ScheduleCalendarView
from school_portal.modules.calendar.service import CalendarService
from school_portal.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/calendar", tags=["Calendar"])


@router.get("/schedules", response_model=ApiResponse[ScheduleCalendarView])
async def get_schedules(
    current_user: AdminUser,
    view: ViewMode = Query(ViewMode.MONTH),
    month: str | None = Query(None, description="YYYY-MM (month view)."),
    selected_date: date | None = Query(None, alias="date", description="Selected day (week/day view)."),
    branch_id: int | None = Query(None),
    teacher_id: int | None = Query(None),
    room_id: int | None = Query(None),
    api: ApiClient = Depends(get_api_client),
):
    """
    Class schedule calendar page: events of the visible range laid out as a
    month grid, a Sunday-Saturday week or hourly rows of one day.

    Admins always see their own branch. Teacher and room filters apply only
    once a branch is chosen.
    """
    service = CalendarService(api, current_user)
    data = await service.get_schedule_view(
        view,
        month=month,
        selected=selected_date,
        branch_id=branch_id,
        teacher_id=teacher_id,
        room_id=room_id,
    )
    return ApiResponse(data=data)


@router.get("/classes/{class_id}", response_model=ApiResponse[ClassDetails])
async def get_class_details(
    current_user: AdminUser,
    class_id: int,
    api: ApiClient = Depends(get_api_client),
):
    """Class shown in the event modal."""
    service = CalendarService(api, current_user)
    return ApiResponse(data=await service.get_class_details(class_id))
