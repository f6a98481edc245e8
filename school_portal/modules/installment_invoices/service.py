"""Service for Installment Invoices module."""

import re
from datetime import date
from typing import Any

from school_portal.core.api_client import ApiClient
from school_portal.core.exceptions import FormValidationError
from school_portal.modules.installment_invoices.schemas import (
    GenerateInvoiceForm,
    GenerationSchedule,
    InstallmentInvoiceList,
    PhaseProgress,
)
from school_portal.shared.utils.text import matches_search

# Generation form fields in display order, with their required-field messages
REQUIRED_GENERATION_FIELDS = {
    "issue_date": "Issue date is required",
    "due_date": "Due date is required",
    "invoice_month": "Invoice month is required",
    "next_issue_date": "Next issue date is required",
    "next_due_date": "Next due date is required",
    "next_invoice_month": "Next invoice month is required",
    "next_generation_date": "Next generation date is required",
}

GENERATION_DAY = 25
DUE_DAY = 5
NEXT_MONTH_DUE_DAY = 7


def frequency_months(frequency: str | None) -> int:
    """'3 month(s)' -> 3; anything without a number -> 1."""
    match = re.search(r"\d+", str(frequency or "1 month(s)"))
    return int(match.group()) if match else 1


def add_months(d: date, months: int, day: int = 1) -> date:
    """Same-year/next-year month arithmetic landing on `day` (always valid: day <= 28)."""
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    return date(year, month + 1, day)


def phase_progress(invoice: dict[str, Any]) -> PhaseProgress:
    generated = int(invoice.get("generated_phases") or invoice.get("generated_count") or 0)
    total = invoice.get("total_phases")
    if total is None:
        return PhaseProgress(generated=generated, total_phases=None, percent=None, complete=False)
    total = int(total)
    percent = min(generated / total * 100, 100) if total > 0 else 100.0
    return PhaseProgress(
        generated=generated,
        total_phases=total,
        percent=round(percent, 2),
        complete=generated >= total,
    )


def _schedule(issue: date, invoice_month: date, generation: date, months: int) -> GenerationSchedule:
    next_invoice_month = add_months(invoice_month, months)
    next_issue = next_invoice_month.replace(day=GENERATION_DAY)
    return GenerationSchedule(
        issue_date=issue.isoformat(),
        due_date=add_months(invoice_month, 1, DUE_DAY).isoformat(),
        invoice_month=invoice_month.isoformat(),
        generation_date=generation.isoformat(),
        next_issue_date=next_issue.isoformat(),
        next_due_date=add_months(next_invoice_month, 1, DUE_DAY).isoformat(),
        next_invoice_month=next_invoice_month.isoformat(),
        next_generation_date=next_issue.isoformat(),
    )


def generation_defaults(frequency: str | None, today: date) -> GenerationSchedule:
    """
    Manual generation today bills next month:
    invoice month = 1st of next month, generated on its 25th, due the 5th after.
    """
    invoice_month = add_months(today, 1)
    generation = invoice_month.replace(day=GENERATION_DAY)
    return _schedule(today, invoice_month, generation, frequency_months(frequency))


def schedule_from_issue_date(frequency: str | None, issue: date) -> GenerationSchedule:
    """Schedule recomputed after the issue date is edited: it bills its own month."""
    invoice_month = issue.replace(day=1)
    return _schedule(issue, invoice_month, issue, frequency_months(frequency))


def schedule_from_next_invoice_month(schedule: GenerationSchedule, picked: date) -> GenerationSchedule:
    """
    Next invoice month edited: it snaps to the 1st, which is also the next
    issue and generation date; the next due date is the 7th of that month.
    """
    month_first = picked.replace(day=1)
    return schedule.model_copy(
        update={
            "next_invoice_month": month_first.isoformat(),
            "next_issue_date": month_first.isoformat(),
            "next_due_date": month_first.replace(day=NEXT_MONTH_DUE_DAY).isoformat(),
            "next_generation_date": month_first.isoformat(),
        }
    )


def filter_installment_invoices(
    invoices: list[dict[str, Any]], search: str | None = None, status: str | None = None
) -> list[dict[str, Any]]:
    return [
        inv
        for inv in invoices
        if matches_search(search, inv.get("student_name"), inv.get("program_name"))
        and (not status or inv.get("status") == status)
    ]


class InstallmentInvoiceService:
    """Service for installment invoice schedules."""

    def __init__(self, api: ApiClient):
        self.api = api

    async def _all(self) -> list[dict[str, Any]]:
        body = await self.api.get("/installment-invoices/invoices", {"limit": 100})
        return body.get("data") or []

    async def list_invoices(self, search: str | None = None, status: str | None = None) -> InstallmentInvoiceList:
        invoices = await self._all()
        items = [
            {**inv, "phase_progress": phase_progress(inv).model_dump()}
            for inv in filter_installment_invoices(invoices, search, status)
        ]
        return InstallmentInvoiceList(
            items=items,
            total=len(invoices),
            statuses=sorted({inv["status"] for inv in invoices if inv.get("status")}),
            empty_message=None if items else "No installment invoices found.",
        )

    async def get_frequency(self, installment_id: int) -> str | None:
        for inv in await self._all():
            if inv.get("installmentinvoicedtl_id") == installment_id:
                return inv.get("frequency")
        return None

    @staticmethod
    def validate(form: GenerateInvoiceForm) -> dict[str, Any]:
        values = form.model_dump()
        errors = {field: message for field, message in REQUIRED_GENERATION_FIELDS.items() if not values.get(field)}
        if errors:
            raise FormValidationError(errors)
        return values

    async def generate(self, installment_id: int, form: GenerateInvoiceForm) -> dict[str, Any]:
        payload = self.validate(form)
        body = await self.api.post(f"/installment-invoices/invoices/{installment_id}/generate", payload)
        return body.get("data") or {}
