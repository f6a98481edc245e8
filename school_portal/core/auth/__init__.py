from school_portal.core.auth.dependencies import (
    ensure_branch_access,
    get_current_user,
    require_roles,
    scoped_branch_id,
)
from school_portal.core.auth.models import CurrentUser, UserRole

__all__ = [
    "CurrentUser",
    "UserRole",
    "ensure_branch_access",
    "get_current_user",
    "require_roles",
    "scoped_branch_id",
]
