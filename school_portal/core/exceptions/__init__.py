from school_portal.core.exceptions.base import (
    AppException,
    ValidationError,
    FormValidationError,
    AuthenticationError,
    AuthorizationError,
    BranchAccessError,
    UpstreamError,
    UpstreamUnavailableError,
)

__all__ = [
    "AppException",
    "ValidationError",
    "FormValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "BranchAccessError",
    "UpstreamError",
    "UpstreamUnavailableError",
]
