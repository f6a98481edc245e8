from school_portal.shared.schemas.base import (
    BaseSchema,
    FilteredList,
    PaginatedResponse,
    Record,
    SuccessResponse,
    ErrorResponse,
    ErrorDetail,
)

__all__ = [
    "BaseSchema",
    "FilteredList",
    "PaginatedResponse",
    "Record",
    "SuccessResponse",
    "ErrorResponse",
    "ErrorDetail",
]
