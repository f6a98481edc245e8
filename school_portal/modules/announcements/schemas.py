"""Schemas for Announcements module."""

from enum import StrEnum

from pydantic import BaseModel, Field

from school_portal.shared.schemas import BaseSchema, PaginatedResponse, Record


class RecipientGroup(StrEnum):
    ALL = "All"
    STUDENTS = "Students"
    TEACHERS = "Teachers"
    ADMIN = "Admin"
    FINANCE = "Finance"


class AnnouncementStatus(StrEnum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    DRAFT = "Draft"


class Priority(StrEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class AnnouncementForm(BaseModel):
    """Create/edit announcement modal."""

    title: str | None = None
    body: str | None = None
    recipient_groups: list[str] = Field(default_factory=list)
    status: str | None = AnnouncementStatus.ACTIVE.value
    priority: str | None = Priority.MEDIUM.value
    start_date: str | None = None
    end_date: str | None = None


class AnnouncementPage(PaginatedResponse[Record]):
    highlighted_id: int | None = None


class NotificationFeed(BaseSchema):
    """Bell dropdown, high-priority modal and toast candidates from one fetch."""

    items: list[Record]
    unread_count: int
    badge: str | None
    high_priority: Record | None = None
    toasts: list[Record] = Field(default_factory=list)


class MarkReadResult(BaseSchema):
    announcement_id: int
    redirect_to: str
