"""Schemas for Invoices module."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from school_portal.shared.schemas import BaseSchema, FilteredList, Record


class InvoiceStatus(StrEnum):
    DRAFT = "Draft"
    PENDING = "Pending"
    UNPAID = "Unpaid"
    PARTIALLY_PAID = "Partially Paid"
    PAID = "Paid"
    OVERDUE = "Overdue"
    CANCELLED = "Cancelled"


# Choices offered by the invoice form and by the detail status editor
FORM_STATUSES = [
    InvoiceStatus.DRAFT,
    InvoiceStatus.PENDING,
    InvoiceStatus.PAID,
    InvoiceStatus.OVERDUE,
    InvoiceStatus.CANCELLED,
]
DETAIL_STATUSES = [InvoiceStatus.PENDING, InvoiceStatus.UNPAID, InvoiceStatus.PAID]


class PaymentMethod(StrEnum):
    CASH = "Cash"
    ONLINE_BANKING = "Online Banking"
    CREDIT_CARD = "Credit Card"
    E_WALLETS = "E-wallets"


class PaymentType(StrEnum):
    FULL = "Full Payment"
    PARTIAL = "Partial Payment"
    ADVANCE = "Advance Payment"


# --- Invoice Item Schemas ---


class InvoiceItemForm(BaseModel):
    """Line item as typed in the item row; numbers may arrive as strings."""

    description: str | None = None
    amount: Any = None
    tax_item: str | None = None
    tax_percentage: Any = None
    discount_amount: Any = None
    penalty_amount: Any = None


# --- Invoice Schemas ---


class InvoiceForm(BaseModel):
    """Create/edit invoice modal."""

    branch_id: int | str | None = None
    amount: Any = None
    status: str | None = None
    remarks: str | None = None
    issue_date: str | None = None
    due_date: str | None = None
    items: list[InvoiceItemForm] = Field(default_factory=list)
    students: list[int] = Field(default_factory=list)


class InvoiceStatusUpdate(BaseModel):
    status: str


class InvoiceStudentAdd(BaseModel):
    student_id: int | str | None = None


class InvoiceList(FilteredList):
    form_statuses: list[str] = [s.value for s in FORM_STATUSES]


class InvoiceDetail(BaseSchema):
    invoice: Record
    expanded_items: list[Record]
    detail_statuses: list[str] = [s.value for s in DETAIL_STATUSES]


class StatusUpdateResult(BaseSchema):
    invoice_id: int
    status: str
    changed: bool


# --- Payment Schemas ---


class PaymentForm(BaseModel):
    """Record-payment modal."""

    student_id: int | str | None = None
    payment_method: str | None = PaymentMethod.CASH.value
    payment_type: str | None = None
    payable_amount: Any = None
    issue_date: str | None = None
    reference_number: str | None = None
    remarks: str | None = None


class PaymentFormDefaults(BaseSchema):
    invoice_id: int
    student_id: int | None
    payment_method: str
    payment_type: str
    payable_amount: float | None
    issue_date: str
    reference_number: str = ""
    remarks: str = ""
    payment_methods: list[str] = [m.value for m in PaymentMethod]
    payment_types: list[str] = [t.value for t in PaymentType]
