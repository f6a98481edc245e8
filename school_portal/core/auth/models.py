from enum import StrEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class UserRole(StrEnum):
    """User roles in the system (backend `user_type`)."""

    SUPERADMIN = "Superadmin"
    ADMIN = "Admin"
    FINANCE = "Finance"
    SUPERFINANCE = "Superfinance"
    TEACHER = "Teacher"
    STUDENT = "Student"


STAFF_ROLES = (
    UserRole.SUPERADMIN,
    UserRole.ADMIN,
    UserRole.FINANCE,
    UserRole.SUPERFINANCE,
    UserRole.TEACHER,
)

_ANNOUNCEMENT_PATHS = {
    UserRole.SUPERADMIN.value: "/superadmin/announcements",
    UserRole.ADMIN.value: "/admin/announcements",
    UserRole.TEACHER.value: "/teacher/announcements",
    UserRole.STUDENT.value: "/student/announcements",
}


class CurrentUser(BaseModel):
    """
    Signed-in user as returned by the backend /auth/verify.

    The backend sends both snake_case and camelCase keys; either is accepted.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: int | None = Field(None, validation_alias=AliasChoices("user_id", "userId"))
    email: str | None = None
    full_name: str | None = Field(None, validation_alias=AliasChoices("full_name", "fullName"))
    user_type: str = Field(..., validation_alias=AliasChoices("user_type", "userType"))
    branch_id: int | None = Field(None, validation_alias=AliasChoices("branch_id", "branchId"))
    branch_name: str | None = Field(None, validation_alias=AliasChoices("branch_name", "branchName"))

    def has_role(self, *roles: UserRole) -> bool:
        """Check if user has any of the specified roles."""
        return self.user_type in [r.value for r in roles]

    @property
    def is_superadmin(self) -> bool:
        return self.user_type == UserRole.SUPERADMIN.value

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserRole.ADMIN.value

    @property
    def role_path(self) -> str:
        """URL segment of the user's dashboard: /superadmin, /admin, ..."""
        return f"/{self.user_type.lower()}"

    @property
    def announcements_path(self) -> str:
        return _ANNOUNCEMENT_PATHS.get(self.user_type, _ANNOUNCEMENT_PATHS[UserRole.SUPERADMIN.value])
