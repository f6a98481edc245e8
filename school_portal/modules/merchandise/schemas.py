"""Schemas for Merchandise module."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from school_portal.shared.schemas import BaseSchema, Record


class MerchandiseCategory(StrEnum):
    """First step of the 'add merchandise' wizard."""

    UNIFORM_SCHOOL = "uniform_school"
    UNIFORM_PE = "uniform_pe"
    OTHER = "other"


class RequestStatus(StrEnum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"


class CategoryPreset(BaseSchema):
    category: str
    merchandise_name: str
    requires_sizing: bool
    description: str


# --- Inventory Schemas ---


class MerchandiseType(BaseSchema):
    """All stock rows sharing one merchandise_name within a branch."""

    name: str
    image_url: str | None = None
    stock_count: int
    total_quantity: int
    requires_sizing: bool


class StockRow(BaseSchema):
    merchandise_id: int
    size: str
    quantity: int
    price: float
    gender: str
    type: str
    image_url: str | None = None


class MerchandiseTypeList(BaseSchema):
    branch_id: int | None
    types: list[MerchandiseType]


class StockList(BaseSchema):
    branch_id: int | None
    merchandise_name: str
    requires_sizing: bool
    stocks: list[StockRow]


class MerchandiseForm(BaseModel):
    """Create/edit a stock row; numbers may arrive as strings."""

    merchandise_name: str | None = None
    size: str | None = None
    quantity: Any = None
    price: Any = None
    branch_id: int | str | None = None
    gender: str | None = None
    type: str | None = None
    image_url: str | None = None


class TypeImageUpdate(BaseModel):
    branch_id: int | None = None
    merchandise_name: str
    image_url: str | None = None


class BulkResult(BaseSchema):
    merchandise_name: str
    affected: int


class UploadedImage(BaseSchema):
    image_url: str


# --- Stock Request Schemas ---


class StockRequestForm(BaseModel):
    merchandise_name: str | None = None
    size: str | None = None
    requested_quantity: Any = None
    request_reason: str | None = None
    gender: str | None = None
    type: str | None = None


class StockRequestDefaults(BaseSchema):
    merchandise_name: str = ""
    size: str = ""
    requested_quantity: str = ""
    request_reason: str = ""
    gender: str = ""
    type: str = ""
    requires_sizing: bool = False
    is_uniform: bool = False


class ApproveRequestForm(BaseModel):
    review_notes: str | None = None
    price: Any = None


class RejectRequestForm(BaseModel):
    review_notes: str | None = None


class StockRequestList(BaseSchema):
    items: list[Record]
    total: int
    statuses: list[str] = [s.value for s in RequestStatus]
