from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppException):
    """Validation error."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=422, details=details)


class FormValidationError(AppException):
    """
    One or more form fields failed validation.

    errors maps field name -> message, one entry per invalid field.
    """

    def __init__(self, errors: dict[str, str], message: str = "Please fix the errors in the form"):
        self.errors = dict(errors)
        super().__init__(message=message, status_code=422, details={"errors": self.errors})


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message, status_code=401)


class AuthorizationError(AppException):
    """Not authorized to perform action."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message=message, status_code=403)


class BranchAccessError(AuthorizationError):
    """Admin tried to touch a record of another branch."""

    def __init__(self, action: str, resource: str):
        super().__init__(f"You can only {action} {resource} from your branch.")


class UpstreamError(AppException):
    """Backend API answered with a non-2xx status."""

    def __init__(
        self,
        message: str = "An error occurred",
        status_code: int = 400,
        errors: list[dict[str, Any]] | None = None,
    ):
        self.errors = errors or []
        super().__init__(message=message, status_code=status_code, details={"upstream_errors": self.errors})


class UpstreamUnavailableError(AppException):
    """Backend API could not be reached or returned an unreadable body."""

    def __init__(self, message: str = "Backend service is unavailable"):
        super().__init__(message=message, status_code=502)
