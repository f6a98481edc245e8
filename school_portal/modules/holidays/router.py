from datetime import date

from fastapi import APIRouter, Depends, Query

from school_portal.core.api_client import ApiClient, get_api_client
from school_portal.core.auth import CurrentUser, UserRole, require_roles
from school_portal.core.auth.dependencies import AdminUser
from school_portal.modules.calendar.grid import ViewMode
from school_portal.modules.holidays.schemas import HolidayCalendarView, HolidayForm
from school_portal.modules.holidays.service import CUSTOM_SOURCE, HolidayService
from school_portal.shared.schemas.base import ApiResponse, Record

router = APIRouter(prefix="/holidays", tags=["Holidays"])

ViewHolidaysUser = Depends(
    require_roles(UserRole.SUPERADMIN, UserRole.ADMIN, UserRole.TEACHER, UserRole.FINANCE)
)


@router.get("", response_model=ApiResponse[HolidayCalendarView])
async def get_holiday_calendar(
    view: ViewMode = Query(ViewMode.MONTH),
    month: str | None = Query(None, description="YYYY-MM (month view)."),
    selected_date: date | None = Query(None, alias="date"),
    api: ApiClient = Depends(get_api_client),
    current_user: CurrentUser = ViewHolidaysUser,
):
    """Holiday calendar page (national + custom holidays of the visible range)."""
    service = HolidayService(api, current_user)
    return ApiResponse(data=await service.get_calendar(view, month, selected_date))


@router.post("", response_model=ApiResponse[Record], status_code=201)
async def create_holiday(
    current_user: AdminUser,
    form: HolidayForm,
    api: ApiClient = Depends(get_api_client),
):
    service = HolidayService(api, current_user)
    data = await service.create_holiday(form)
    return ApiResponse(data=data, message="Holiday created successfully")


@router.put("/{holiday_id}", response_model=ApiResponse[Record])
async def update_holiday(
    current_user: AdminUser,
    holiday_id: int,
    form: HolidayForm,
    api: ApiClient = Depends(get_api_client),
):
    service = HolidayService(api, current_user)
    data = await service.update_holiday(holiday_id, form)
    return ApiResponse(data=data, message="Holiday updated successfully")


@router.delete("/{holiday_id}", response_model=ApiResponse[None])
async def delete_holiday(
    current_user: AdminUser,
    holiday_id: int,
    source: str = Query(CUSTOM_SOURCE),
    api: ApiClient = Depends(get_api_client),
):
    service = HolidayService(api, current_user)
    await service.delete_holiday(holiday_id, source)
    return ApiResponse(data=None, message="Holiday deleted successfully")
