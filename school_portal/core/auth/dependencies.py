from typing import Annotated, Any

from fastapi import Depends, Header

from school_portal.core.api_client import ApiClient, get_api_client
from school_portal.core.auth.models import CurrentUser, STAFF_ROLES, UserRole
from school_portal.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BranchAccessError,
    UpstreamError,
)


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    api: ApiClient = Depends(get_api_client),
) -> CurrentUser:
    """
    Dependency to resolve the signed-in user from the backend session.

    Usage:
        @router.get("/me")
        async def get_me(user: CurrentUser = Depends(get_current_user)):
            return user
    """
    if not authorization:
        raise AuthenticationError("Authorization header required")

    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid authorization header format")

    try:
        body = await api.post("/auth/verify")
    except UpstreamError as exc:
        if exc.status_code in (401, 403):
            raise AuthenticationError(exc.message) from exc
        raise

    user = body.get("user")
    if not user:
        raise AuthenticationError("User not found")

    return CurrentUser.model_validate(user)


def require_roles(*roles: UserRole):
    """
    Dependency factory to require specific roles.

    Usage:
        @router.post("/holidays")
        async def create_holiday(
            user: CurrentUser = Depends(require_roles(UserRole.SUPERADMIN))
        ):
            ...
    """

    async def role_checker(
        current_user: CurrentUser = Depends(get_current_user),
    ) -> CurrentUser:
        if not current_user.has_role(*roles):
            allowed = ", ".join(r.value for r in roles)
            raise AuthorizationError(f"Required role: {allowed}")
        return current_user

    return role_checker


def scoped_branch_id(user: CurrentUser, requested: Any = None) -> int | None:
    """Admins always work inside their own branch; other roles may pick one."""
    if user.is_admin:
        return user.branch_id
    if requested in (None, ""):
        return None
    return int(requested)


def ensure_branch_access(user: CurrentUser, branch_id: Any, action: str, resource: str) -> None:
    """Raise unless the user may `action` a record belonging to branch_id."""
    if not user.is_admin:
        return
    if branch_id is None or user.branch_id is None or int(branch_id) != int(user.branch_id):
        raise BranchAccessError(action, resource)


# Convenience dependencies
AuthenticatedUser = Annotated[CurrentUser, Depends(get_current_user)]
StaffUser = Annotated[CurrentUser, Depends(require_roles(*STAFF_ROLES))]
SuperAdminUser = Annotated[CurrentUser, Depends(require_roles(UserRole.SUPERADMIN))]
AdminUser = Annotated[CurrentUser, Depends(require_roles(UserRole.SUPERADMIN, UserRole.ADMIN))]
BillingUser = Annotated[
    CurrentUser, Depends(require_roles(UserRole.SUPERADMIN, UserRole.ADMIN, UserRole.FINANCE))
]
FinanceUser = Annotated[
    CurrentUser,
    Depends(require_roles(UserRole.SUPERADMIN, UserRole.ADMIN, UserRole.FINANCE, UserRole.SUPERFINANCE)),
]
