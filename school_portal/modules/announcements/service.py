"""Service for Announcements module."""

from typing import Any

from school_portal.core.api_client import ApiClient
from school_portal.core.auth import CurrentUser
from school_portal.core.exceptions import FormValidationError
from school_portal.modules.announcements.schemas import (
    AnnouncementForm,
    AnnouncementPage,
    AnnouncementStatus,
    MarkReadResult,
    NotificationFeed,
    Priority,
    RecipientGroup,
)
from school_portal.shared.utils.dates import format_date_manila, parse_ymd
from school_portal.shared.utils.text import clean_text

MAX_BADGE = 9
TOAST_PRIORITIES = (Priority.MEDIUM.value, Priority.LOW.value)


def unread_badge(count: int) -> str | None:
    if count <= 0:
        return None
    return f"{MAX_BADGE}+" if count > MAX_BADGE else str(count)


def toggle_recipient_group(groups: list[str], group: str) -> list[str]:
    """Checkbox behaviour of the recipient picker."""
    if group in groups:
        return [g for g in groups if g != group]
    return [*groups, group]


def format_recipient_groups(groups: list[str] | None) -> str:
    return ", ".join(groups) if groups else "N/A"


def _with_display_fields(announcement: dict[str, Any]) -> dict[str, Any]:
    return {
        **announcement,
        "recipients_display": format_recipient_groups(announcement.get("recipient_groups")),
        "start_date_display": format_date_manila(announcement.get("start_date")),
        "end_date_display": format_date_manila(announcement.get("end_date")),
        "created_at_display": format_date_manila(announcement.get("created_at")),
    }


class AnnouncementService:
    """Announcements list, editor and per-user notification state."""

    def __init__(self, api: ApiClient, user: CurrentUser):
        self.api = api
        self.user = user

    async def list_announcements(
        self,
        page: int = 1,
        limit: int = 15,
        title: str | None = None,
        recipient_group: str | None = None,
        created_on: str | None = None,
        status: str | None = None,
        highlight: int | None = None,
    ) -> AnnouncementPage:
        body = await self.api.get(
            "/announcements",
            {
                "page": page,
                "limit": limit,
                "title": title,
                "recipient_group": recipient_group,
                "created_on": created_on,
                "status": status,
            },
        )
        rows = body.get("data") or []
        pagination = body.get("pagination") or {}
        total = int(pagination.get("total") or 0)
        pages = pagination.get("totalPages")
        highlighted = highlight if any(r.get("announcement_id") == highlight for r in rows) else None
        page_model = AnnouncementPage.create(
            items=[_with_display_fields(r) for r in rows],
            total=total,
            page=page,
            limit=limit,
            pages=int(pages) if pages is not None else None,
        )
        page_model.highlighted_id = highlighted
        return page_model

    def build_payload(self, form: AnnouncementForm) -> dict[str, Any]:
        errors: dict[str, str] = {}
        title = clean_text(form.title)
        body = clean_text(form.body)
        if not title:
            errors["title"] = "Title is required"
        if not body:
            errors["body"] = "Body is required"
        groups = [g for g in form.recipient_groups if g]
        if not groups:
            errors["recipient_groups"] = "At least one recipient group is required"
        elif any(g not in {r.value for r in RecipientGroup} for g in groups):
            errors["recipient_groups"] = "Invalid recipient group"
        if not form.status:
            errors["status"] = "Status is required"
        elif form.status not in {s.value for s in AnnouncementStatus}:
            errors["status"] = "Invalid status"
        if not form.priority:
            errors["priority"] = "Priority is required"
        elif form.priority not in {p.value for p in Priority}:
            errors["priority"] = "Invalid priority"
        start, end = parse_ymd(form.start_date), parse_ymd(form.end_date)
        if not form.start_date:
            errors["start_date"] = "Start date is required"
        if not form.end_date:
            errors["end_date"] = "End date is required"
        elif start and end and start > end:
            errors["end_date"] = "End date must be after or equal to start date"
        if errors:
            raise FormValidationError(errors)

        return {
            "title": title,
            "body": body,
            "recipient_groups": groups,
            "status": form.status,
            "priority": form.priority,
            "branch_id": self.user.branch_id,
            "start_date": form.start_date,
            "end_date": form.end_date,
        }

    async def create(self, form: AnnouncementForm) -> dict[str, Any]:
        body = await self.api.post("/announcements", self.build_payload(form))
        return body.get("data") or {}

    async def update(self, announcement_id: int, form: AnnouncementForm) -> dict[str, Any]:
        body = await self.api.put(f"/announcements/{announcement_id}", self.build_payload(form))
        return body.get("data") or {}

    async def delete(self, announcement_id: int) -> None:
        await self.api.delete(f"/announcements/{announcement_id}")

    async def notifications(self, known_ids: set[int] | None = None) -> NotificationFeed:
        """
        Current notifications for the bell.

        toasts are unread Medium/Low items; when known_ids is given only the
        ones not seen by the previous poll are returned.
        """
        body = await self.api.get("/announcements/notifications")
        items = body.get("data") or []
        unread = [a for a in items if not a.get("is_read")]
        high = next((a for a in unread if a.get("priority") == Priority.HIGH.value), None)
        toasts = [a for a in unread if a.get("priority") in TOAST_PRIORITIES]
        if known_ids:
            toasts = [a for a in toasts if a.get("announcement_id") not in known_ids]
        count = int(body.get("unreadCount") or 0)
        return NotificationFeed(
            items=items,
            unread_count=count,
            badge=unread_badge(count),
            high_priority=high,
            toasts=toasts,
        )

    async def mark_read(self, announcement_id: int) -> MarkReadResult:
        await self.api.post(f"/announcements/{announcement_id}/read")
        return MarkReadResult(
            announcement_id=announcement_id,
            redirect_to=f"{self.user.announcements_path}?highlight={announcement_id}",
        )
