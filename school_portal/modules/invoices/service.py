"""Service for Invoices module."""

from decimal import Decimal
from typing import Any

from school_portal.core.api_client import ApiClient
from school_portal.core.auth import CurrentUser, UserRole, ensure_branch_access, scoped_branch_id
from school_portal.core.exceptions import FormValidationError, ValidationError
from school_portal.modules.invoices.schemas import (
    InvoiceDetail,
    InvoiceForm,
    InvoiceItemForm,
    InvoiceList,
    InvoiceStatus,
    PaymentForm,
    PaymentFormDefaults,
    PaymentMethod,
    PaymentType,
    StatusUpdateResult,
)
from school_portal.shared.utils.dates import parse_ymd, today_manila_ymd
from school_portal.shared.utils.money import parse_amount, round_money
from school_portal.shared.utils.text import clean_text, matches_search

PACKAGE_PREFIX = "Package:"


def invoice_number(invoice_id: Any) -> str:
    return f"INV-{invoice_id}"


def calculate_item_total(item: dict[str, Any]) -> Decimal:
    """(amount - discount + penalty) * (1 + tax% / 100); missing parts count as 0."""
    amount = parse_amount(item.get("amount")) or Decimal("0")
    discount = parse_amount(item.get("discount_amount")) or Decimal("0")
    penalty = parse_amount(item.get("penalty_amount")) or Decimal("0")
    tax = parse_amount(item.get("tax_percentage")) or Decimal("0")
    return round_money((amount - discount + penalty) * (1 + tax / 100))


def _float_or_none(value: Any) -> float | None:
    parsed = parse_amount(value)
    return float(parsed) if parsed is not None else None


def _int_or_none(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def item_payload(item: InvoiceItemForm) -> dict[str, Any]:
    """Validate one line item and shape it for the backend."""
    description = clean_text(item.description)
    amount = parse_amount(item.amount)
    if not description or item.amount in (None, "") or amount is None:
        raise ValidationError("Please fill in description and amount", field="description")
    return {
        "description": description,
        "amount": float(amount),
        "tax_item": clean_text(item.tax_item),
        "tax_percentage": _float_or_none(item.tax_percentage),
        "discount_amount": _float_or_none(item.discount_amount),
        "penalty_amount": _float_or_none(item.penalty_amount),
    }


def filter_invoices(
    invoices: list[dict[str, Any]], search: str | None = None, status: str | None = None
) -> list[dict[str, Any]]:
    result = []
    for invoice in invoices:
        invoice_id = invoice.get("invoice_id")
        if search and not matches_search(
            search, invoice_number(invoice_id), invoice_id, invoice.get("invoice_description")
        ):
            continue
        if status and invoice.get("status") != status:
            continue
        result.append(invoice)
    return result


class InvoiceService:
    """Service for managing invoices, their items, students and payments."""

    def __init__(self, api: ApiClient, user: CurrentUser):
        self.api = api
        self.user = user
        self._packages: list[dict[str, Any]] | None = None

    # --- Helper Methods ---

    async def _get_raw(self, invoice_id: int) -> dict[str, Any]:
        body = await self.api.get(f"/invoices/{invoice_id}")
        return body.get("data") or {}

    async def _package_details(self, package_name: str) -> list[dict[str, Any]]:
        """Inclusions of a package, looked up by name (one /packages fetch per request)."""
        if self._packages is None:
            body = await self.api.get("/packages", {"limit": 1000})
            self._packages = body.get("data") or []
        for package in self._packages:
            if package.get("package_name") == package_name:
                return package.get("details") or []
        return []

    async def expand_items(self, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Package items are followed by their (unpriced) inclusions."""
        expanded: list[dict[str, Any]] = []
        for item in items:
            expanded.append(
                {**item, "computed_total": float(calculate_item_total(item)), "is_inclusion": False}
            )
            description = item.get("description") or ""
            if not description.startswith(PACKAGE_PREFIX):
                continue
            package_name = description.replace(PACKAGE_PREFIX, "", 1).strip()
            for detail in await self._package_details(package_name):
                if detail.get("pricing_name"):
                    text = f"Pricing: {detail['pricing_name']}"
                    key = f"pricing-{detail.get('packagedtl_id')}"
                elif detail.get("merchandise_name"):
                    size = f" ({detail['size']})" if detail.get("size") else ""
                    text = f"Merchandise: {detail['merchandise_name']}{size}"
                    key = f"merchandise-{detail.get('packagedtl_id')}"
                else:
                    continue
                expanded.append(
                    {
                        "invoice_item_id": key,
                        "description": text,
                        "amount": None,
                        "computed_total": None,
                        "is_inclusion": True,
                    }
                )
        return expanded

    async def _get_owned(self, invoice_id: int, action: str) -> dict[str, Any]:
        invoice = await self._get_raw(invoice_id)
        ensure_branch_access(self.user, invoice.get("branch_id"), action, "invoices")
        return invoice

    @staticmethod
    def _validate_dates(issue_date: str | None, due_date: str | None) -> None:
        errors: dict[str, str] = {}
        issue, due = parse_ymd(issue_date), parse_ymd(due_date)
        if issue_date and issue is None:
            errors["issue_date"] = "Invalid issue date"
        if due_date and due is None:
            errors["due_date"] = "Invalid due date"
        if issue and due and issue > due:
            errors["due_date"] = "Due date must be after issue date"
        if errors:
            raise FormValidationError(errors)

    def _header_payload(self, form: InvoiceForm) -> dict[str, Any]:
        self._validate_dates(form.issue_date, form.due_date)
        return {
            "amount": _float_or_none(form.amount),
            "status": form.status or InvoiceStatus.DRAFT.value,
            "remarks": clean_text(form.remarks),
            "issue_date": form.issue_date or None,
            "due_date": form.due_date or None,
        }

    # --- Invoices ---

    async def list_invoices(
        self, search: str | None = None, status: str | None = None, branch_id: int | None = None
    ) -> InvoiceList:
        branch_id = scoped_branch_id(self.user, branch_id)
        body = await self.api.get("/invoices", {"branch_id": branch_id, "limit": 100})
        invoices = body.get("data") or []
        items = filter_invoices(invoices, search, status)
        if items:
            empty_message = None
        elif search or status:
            empty_message = "No invoices found matching your criteria."
        else:
            empty_message = "No invoices found. Add your first invoice to get started."
        return InvoiceList(
            items=items,
            total=len(invoices),
            statuses=sorted({inv["status"] for inv in invoices if inv.get("status")}),
            empty_message=empty_message,
        )

    async def get_invoice(self, invoice_id: int) -> InvoiceDetail:
        invoice = await self._get_raw(invoice_id)
        expanded = await self.expand_items(invoice.get("items") or [])
        return InvoiceDetail(invoice=invoice, expanded_items=expanded)

    async def create_invoice(self, form: InvoiceForm) -> dict[str, Any]:
        payload = self._header_payload(form)
        if self.user.is_admin and self.user.branch_id is not None:
            branch_id = self.user.branch_id
        else:
            branch_id = _int_or_none(form.branch_id)
        payload = {
            "branch_id": branch_id,
            **payload,
            "items": [item_payload(item) for item in form.items],
            "students": list(dict.fromkeys(form.students)),
        }
        body = await self.api.post("/invoices", payload)
        return body.get("data") or {}

    async def update_invoice(self, invoice_id: int, form: InvoiceForm) -> dict[str, Any]:
        await self._get_owned(invoice_id, "edit")
        payload = self._header_payload(form)
        body = await self.api.put(f"/invoices/{invoice_id}", payload)
        return body.get("data") or {}

    async def update_status(self, invoice_id: int, status: str) -> StatusUpdateResult:
        invoice = await self._get_owned(invoice_id, "edit")
        if not status:
            raise ValidationError("Status is required", field="status")
        if status == invoice.get("status"):
            return StatusUpdateResult(invoice_id=invoice_id, status=status, changed=False)
        await self.api.put(f"/invoices/{invoice_id}", {"status": status})
        return StatusUpdateResult(invoice_id=invoice_id, status=status, changed=True)

    async def delete_invoice(self, invoice_id: int) -> None:
        await self._get_owned(invoice_id, "delete")
        await self.api.delete(f"/invoices/{invoice_id}")

    # --- Items and students ---

    async def add_item(self, invoice_id: int, item: InvoiceItemForm) -> InvoiceDetail:
        payload = item_payload(item)
        await self._get_owned(invoice_id, "edit")
        await self.api.post(f"/invoices/{invoice_id}/items", payload)
        return await self.get_invoice(invoice_id)

    async def remove_item(self, invoice_id: int, item_id: int) -> InvoiceDetail:
        await self._get_owned(invoice_id, "edit")
        await self.api.delete(f"/invoices/{invoice_id}/items/{item_id}")
        return await self.get_invoice(invoice_id)

    async def add_student(self, invoice_id: int, student_id: Any) -> InvoiceDetail:
        student_id = _int_or_none(student_id)
        if student_id is None:
            raise ValidationError("Please select a student", field="student_id")
        invoice = await self._get_owned(invoice_id, "edit")
        linked = {s.get("student_id") for s in invoice.get("students") or []}
        if student_id in linked:
            raise ValidationError("Student is already added", field="student_id")
        await self.api.post(f"/invoices/{invoice_id}/students", {"student_id": student_id})
        return await self.get_invoice(invoice_id)

    async def remove_student(self, invoice_id: int, student_id: int) -> InvoiceDetail:
        await self._get_owned(invoice_id, "edit")
        await self.api.delete(f"/invoices/{invoice_id}/students/{student_id}")
        return await self.get_invoice(invoice_id)

    async def list_students(self) -> list[dict[str, Any]]:
        """Students that can be linked to an invoice (Admins: own branch only)."""
        body = await self.api.get("/users", {"limit": 100})
        students = [u for u in body.get("data") or [] if u.get("user_type") == UserRole.STUDENT.value]
        if self.user.is_admin and self.user.branch_id is not None:
            students = [u for u in students if u.get("branch_id") == self.user.branch_id]
        return students

    # --- PDF ---

    async def download_pdf(self, invoice_id: int) -> tuple[bytes, str]:
        content, _ = await self.api.get_bytes(f"/invoices/{invoice_id}/pdf")
        return content, f"invoice_{invoice_number(invoice_id)}.pdf"

    # --- Payments ---

    async def payment_form_defaults(self, invoice_id: int) -> PaymentFormDefaults:
        invoice = await self._get_raw(invoice_id)
        students = invoice.get("students") or []
        return PaymentFormDefaults(
            invoice_id=invoice_id,
            student_id=students[0].get("student_id") if students else None,
            payment_method=PaymentMethod.CASH.value,
            payment_type="",
            payable_amount=_float_or_none(invoice.get("amount")),
            issue_date=today_manila_ymd(),
        )

    @staticmethod
    def payment_payload(invoice_id: int, form: PaymentForm) -> dict[str, Any]:
        errors: dict[str, str] = {}
        student_id = _int_or_none(form.student_id)
        if student_id is None:
            errors["student_id"] = "Student is required"
        method = form.payment_method or PaymentMethod.CASH.value
        if method not in {m.value for m in PaymentMethod}:
            errors["payment_method"] = "Invalid payment method"
        if not form.payment_type:
            errors["payment_type"] = "Payment type is required"
        elif form.payment_type not in {t.value for t in PaymentType}:
            errors["payment_type"] = "Invalid payment type"
        amount = parse_amount(form.payable_amount)
        if amount is None or amount <= 0:
            errors["payable_amount"] = "Payable amount must be greater than 0"
        if not form.issue_date:
            errors["issue_date"] = "Issue date is required"
        if errors:
            raise FormValidationError(errors)

        payload: dict[str, Any] = {
            "invoice_id": invoice_id,
            "student_id": student_id,
            "payment_method": method,
            "payment_type": form.payment_type,
            "payable_amount": float(amount),
            "issue_date": form.issue_date,
        }
        # Cash payments carry no reference number
        reference = clean_text(form.reference_number) if method != PaymentMethod.CASH.value else None
        if reference:
            payload["reference_number"] = reference
        remarks = clean_text(form.remarks)
        if remarks:
            payload["remarks"] = remarks
        return payload

    async def record_payment(self, invoice_id: int, form: PaymentForm) -> dict[str, Any]:
        payload = self.payment_payload(invoice_id, form)
        body = await self.api.post("/payments", payload)
        return body.get("data") or {}
