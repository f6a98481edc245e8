"""Schemas for Installment Invoices module."""

from pydantic import BaseModel

from school_portal.shared.schemas import BaseSchema, FilteredList


class PhaseProgress(BaseSchema):
    generated: int
    total_phases: int | None
    percent: float | None
    complete: bool


class GenerationSchedule(BaseSchema):
    """Dates of the invoice being generated now and of the one after it."""

    issue_date: str
    due_date: str
    invoice_month: str
    generation_date: str
    next_issue_date: str
    next_due_date: str
    next_invoice_month: str
    next_generation_date: str


class GenerateInvoiceForm(BaseModel):
    issue_date: str | None = None
    due_date: str | None = None
    invoice_month: str | None = None
    generation_date: str | None = None
    next_issue_date: str | None = None
    next_due_date: str | None = None
    next_invoice_month: str | None = None
    next_generation_date: str | None = None


class InstallmentInvoiceList(FilteredList):
    pass
