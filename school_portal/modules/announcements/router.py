from fastapi import APIRouter, Depends, Query

from school_portal.core.api_client import ApiClient, get_api_client
from school_portal.core.auth import CurrentUser, UserRole, require_roles
from school_portal.core.auth.dependencies import AuthenticatedUser
from school_portal.modules.announcements.schemas import (
    AnnouncementForm,
    AnnouncementPage,
    MarkReadResult,
    NotificationFeed,
)
from school_portal.modules.announcements.service import AnnouncementService
from school_portal.shared.schemas.base import ApiResponse, Record

router = APIRouter(prefix="/announcements", tags=["Announcements"])

AnnouncementEditor = Depends(require_roles(UserRole.SUPERADMIN, UserRole.ADMIN, UserRole.TEACHER))


@router.get("", response_model=ApiResponse[AnnouncementPage])
async def list_announcements(
    current_user: AuthenticatedUser,
    page: int = Query(1, ge=1),
    limit: int = Query(15, ge=1, le=100),
    title: str | None = Query(None),
    recipient_group: str | None = Query(None),
    created_on: str | None = Query(None, description="YYYY-MM-DD"),
    status: str | None = Query(None),
    highlight: int | None = Query(None, description="Announcement opened from a notification."),
    api: ApiClient = Depends(get_api_client),
):
    service = AnnouncementService(api, current_user)
    data = await service.list_announcements(
        page=page,
        limit=limit,
        title=title,
        recipient_group=recipient_group,
        created_on=created_on,
        status=status,
        highlight=highlight,
    )
    return ApiResponse(data=data)


@router.get("/notifications", response_model=ApiResponse[NotificationFeed])
async def get_notifications(
    current_user: AuthenticatedUser,
    known_ids: list[int] | None = Query(None, description="Ids returned by the previous poll."),
    api: ApiClient = Depends(get_api_client),
):
    service = AnnouncementService(api, current_user)
    return ApiResponse(data=await service.notifications(set(known_ids or [])))


@router.post("", response_model=ApiResponse[Record], status_code=201)
async def create_announcement(
    form: AnnouncementForm,
    api: ApiClient = Depends(get_api_client),
    current_user: CurrentUser = AnnouncementEditor,
):
    service = AnnouncementService(api, current_user)
    data = await service.create(form)
    return ApiResponse(data=data, message="Announcement created successfully")


@router.put("/{announcement_id}", response_model=ApiResponse[Record])
async def update_announcement(
    announcement_id: int,
    form: AnnouncementForm,
    api: ApiClient = Depends(get_api_client),
    current_user: CurrentUser = AnnouncementEditor,
):
    service = AnnouncementService(api, current_user)
    data = await service.update(announcement_id, form)
    return ApiResponse(data=data, message="Announcement updated successfully")


@router.delete("/{announcement_id}", response_model=ApiResponse[None])
async def delete_announcement(
    announcement_id: int,
    api: ApiClient = Depends(get_api_client),
    current_user: CurrentUser = AnnouncementEditor,
):
    service = AnnouncementService(api, current_user)
    await service.delete(announcement_id)
    return ApiResponse(data=None, message="Announcement deleted successfully")


@router.post("/{announcement_id}/read", response_model=ApiResponse[MarkReadResult])
async def mark_announcement_read(
    current_user: AuthenticatedUser,
    announcement_id: int,
    api: ApiClient = Depends(get_api_client),
):
    """Mark as read and return the announcements page to open."""
    service = AnnouncementService(api, current_user)
    return ApiResponse(data=await service.mark_read(announcement_id))
