"""Tests for Invoices API: list/detail, items, students, PDF and payments."""

from decimal import Decimal

import httpx
import pytest
from httpx import AsyncClient

from school_portal.core.exceptions import FormValidationError, ValidationError
from school_portal.modules.invoices.schemas import InvoiceItemForm, PaymentForm
from school_portal.modules.invoices.service import (
    InvoiceService,
    calculate_item_total,
    filter_invoices,
    item_payload,
)

INVOICES = [
    {"invoice_id": 12, "invoice_description": "Tuition Q1", "status": "Pending", "branch_id": 1},
    {"invoice_id": 13, "invoice_description": "Books", "status": "Paid", "branch_id": 1},
    {"invoice_id": 120, "invoice_description": "Uniform", "status": "Draft", "branch_id": 2},
]


def _invoice(invoice_id=12, branch_id=1, status="Pending", items=None, students=None, amount="5200.00"):
    return {
        "success": True,
        "data": {
            "invoice_id": invoice_id,
            "branch_id": branch_id,
            "status": status,
            "amount": amount,
            "items": items or [],
            "students": students or [],
        },
    }


class TestCalculations:
    """Tests for item totals and list filtering."""

    def test_item_total(self):
        item = {"amount": "1000", "discount_amount": 100, "penalty_amount": "50", "tax_percentage": 12}
        assert calculate_item_total(item) == Decimal("1064.00")

    def test_item_total_missing_parts_are_zero(self):
        assert calculate_item_total({"amount": 250}) == Decimal("250.00")
        assert calculate_item_total({}) == Decimal("0.00")

    def test_item_payload_requires_description_and_amount(self):
        with pytest.raises(ValidationError) as exc_info:
            item_payload(InvoiceItemForm(description="Books"))
        assert exc_info.value.message == "Please fill in description and amount"
        with pytest.raises(ValidationError):
            item_payload(InvoiceItemForm(description=" ", amount=10))

    def test_item_payload_numbers(self):
        payload = item_payload(InvoiceItemForm(description=" Books ", amount="1,200.50", tax_percentage="12"))
        assert payload == {
            "description": "Books",
            "amount": 1200.5,
            "tax_item": None,
            "tax_percentage": 12.0,
            "discount_amount": None,
            "penalty_amount": None,
        }

    def test_filter_by_number_and_status(self):
        assert [i["invoice_id"] for i in filter_invoices(INVOICES, "inv-12")] == [12, 120]
        assert [i["invoice_id"] for i in filter_invoices(INVOICES, "books")] == [13]
        assert [i["invoice_id"] for i in filter_invoices(INVOICES, None, "Draft")] == [120]

    def test_payment_payload_validation(self):
        with pytest.raises(FormValidationError) as exc_info:
            InvoiceService.payment_payload(12, PaymentForm(payable_amount="0"))
        assert exc_info.value.errors == {
            "student_id": "Student is required",
            "payment_type": "Payment type is required",
            "payable_amount": "Payable amount must be greater than 0",
            "issue_date": "Issue date is required",
        }

    def test_cash_payment_drops_reference(self):
        payload = InvoiceService.payment_payload(
            12,
            PaymentForm(
                student_id="6",
                payment_method="Cash",
                payment_type="Full Payment",
                payable_amount="5200",
                issue_date="2026-10-19",
                reference_number="REF-1",
            ),
        )
        assert "reference_number" not in payload
        assert payload["student_id"] == 6
        assert payload["payable_amount"] == 5200.0

    def test_online_payment_keeps_reference(self):
        payload = InvoiceService.payment_payload(
            12,
            PaymentForm(
                student_id=6,
                payment_method="Online Banking",
                payment_type="Partial Payment",
                payable_amount=1000,
                issue_date="2026-10-19",
                reference_number=" REF-1 ",
                remarks="first half",
            ),
        )
        assert payload["reference_number"] == "REF-1"
        assert payload["remarks"] == "first half"


class TestListInvoices:
    """Tests for GET /invoices."""

    async def test_list_with_search(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/invoices", {"success": True, "data": INVOICES})
        response = await client.get("/api/v1/invoices?search=INV-13", headers=auth_headers("finance"))
        assert response.status_code == 200
        data = response.json()["data"]
        assert [i["invoice_id"] for i in data["items"]] == [13]
        assert data["total"] == 3
        assert data["statuses"] == ["Draft", "Paid", "Pending"]
        assert "Draft" in data["form_statuses"]
        assert data["empty_message"] is None

    async def test_empty_messages(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/invoices", {"success": True, "data": INVOICES})
        response = await client.get("/api/v1/invoices?status=Overdue", headers=auth_headers("superadmin"))
        assert response.json()["data"]["empty_message"] == "No invoices found matching your criteria."

        backend.add("GET", "/invoices", {"success": True, "data": []})
        response = await client.get("/api/v1/invoices", headers=auth_headers("superadmin"))
        assert response.json()["data"]["empty_message"] == (
            "No invoices found. Add your first invoice to get started."
        )

    async def test_admin_scoped(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/invoices", {"success": True, "data": []})
        await client.get("/api/v1/invoices?branch_id=7", headers=auth_headers("admin"))
        assert backend.requests("GET", "/invoices")[0].url.params["branch_id"] == "1"

    async def test_teacher_forbidden(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/v1/invoices", headers=auth_headers("teacher"))
        assert response.status_code == 403


class TestInvoiceDetail:
    async def test_package_items_expanded(self, client: AsyncClient, backend, auth_headers):
        items = [
            {"invoice_item_id": 1, "description": "Package: Starter", "amount": "5000.00"},
            {"invoice_item_id": 2, "description": "Books", "amount": "200", "tax_percentage": "10"},
        ]
        backend.add("GET", "/invoices/12", _invoice(items=items))
        backend.add(
            "GET",
            "/packages",
            {
                "success": True,
                "data": [
                    {
                        "package_name": "Starter",
                        "details": [
                            {"packagedtl_id": 1, "pricing_name": "Tuition"},
                            {"packagedtl_id": 2, "merchandise_name": "School Uniform", "size": "M"},
                            {"packagedtl_id": 3},
                        ],
                    }
                ],
            },
        )
        response = await client.get("/api/v1/invoices/12", headers=auth_headers("superfinance"))
        assert response.status_code == 200
        expanded = response.json()["data"]["expanded_items"]
        assert [e["description"] for e in expanded] == [
            "Package: Starter",
            "Pricing: Tuition",
            "Merchandise: School Uniform (M)",
            "Books",
        ]
        assert expanded[0]["computed_total"] == 5000.0
        assert expanded[1]["is_inclusion"] is True
        assert expanded[1]["amount"] is None
        assert expanded[3]["computed_total"] == 220.0
        assert len(backend.requests("GET", "/packages")) == 1

    async def test_not_found_passes_through(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/invoices/99", {"success": False, "message": "Invoice not found"}, status_code=404)
        response = await client.get("/api/v1/invoices/99", headers=auth_headers("superadmin"))
        assert response.status_code == 404
        assert response.json()["message"] == "Invoice not found"


class TestCreateUpdateInvoice:
    async def test_admin_create_forces_own_branch(self, client: AsyncClient, backend, auth_headers):
        backend.add("POST", "/invoices", {"success": True, "data": {"invoice_id": 50}})
        response = await client.post(
            "/api/v1/invoices",
            json={
                "branch_id": 9,
                "amount": "1500",
                "issue_date": "2026-10-19",
                "due_date": "2026-11-05",
                "items": [{"description": "Books", "amount": "1500"}],
                "students": [6, 6, 8],
            },
            headers=auth_headers("admin"),
        )
        assert response.status_code == 201
        assert response.json()["message"] == "Invoice created successfully"
        payload = backend.last_json("POST", "/invoices")
        assert payload["branch_id"] == 1
        assert payload["status"] == "Draft"
        assert payload["students"] == [6, 8]
        assert payload["items"][0]["amount"] == 1500.0

    async def test_invalid_item_rejected(self, client: AsyncClient, backend, auth_headers):
        response = await client.post(
            "/api/v1/invoices",
            json={"items": [{"description": "Books"}]},
            headers=auth_headers("superadmin"),
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Please fill in description and amount"
        assert not backend.requests("POST", "/invoices")

    async def test_due_before_issue(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/v1/invoices",
            json={"issue_date": "2026-10-19", "due_date": "2026-10-01"},
            headers=auth_headers("superadmin"),
        )
        assert response.status_code == 422
        assert response.json()["errors"] == [
            {"field": "due_date", "message": "Due date must be after issue date"}
        ]

    async def test_admin_cannot_edit_other_branch(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/invoices/120", _invoice(invoice_id=120, branch_id=2))
        response = await client.put(
            "/api/v1/invoices/120", json={"remarks": "x"}, headers=auth_headers("admin")
        )
        assert response.status_code == 403
        assert response.json()["message"] == "You can only edit invoices from your branch."
        assert not backend.requests("PUT", "/invoices/120")

    async def test_update(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/invoices/12", _invoice())
        backend.add("PUT", "/invoices/12", {"success": True, "data": {"invoice_id": 12}})
        response = await client.put(
            "/api/v1/invoices/12",
            json={"status": "Pending", "remarks": " note "},
            headers=auth_headers("admin"),
        )
        assert response.status_code == 200
        assert backend.last_json("PUT", "/invoices/12")["remarks"] == "note"

    async def test_backend_field_errors_passed_on(self, client: AsyncClient, backend, auth_headers):
        backend.add(
            "POST",
            "/invoices",
            {"success": False, "message": "Validation failed", "errors": [{"param": "amount", "msg": "Invalid value"}]},
            status_code=400,
        )
        response = await client.post("/api/v1/invoices", json={"amount": "10"}, headers=auth_headers("superadmin"))
        assert response.status_code == 400
        data = response.json()
        assert data["message"] == "Validation failed"
        assert data["errors"] == [{"field": "amount", "message": "Invalid value"}]

    async def test_superfinance_cannot_create(self, client: AsyncClient, auth_headers):
        response = await client.post("/api/v1/invoices", json={}, headers=auth_headers("superfinance"))
        assert response.status_code == 403


class TestInvoiceStatusAndDelete:
    async def test_unchanged_status_skips_backend(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/invoices/12", _invoice(status="Paid"))
        response = await client.put(
            "/api/v1/invoices/12/status", json={"status": "Paid"}, headers=auth_headers("finance")
        )
        assert response.status_code == 200
        assert response.json()["data"] == {"invoice_id": 12, "status": "Paid", "changed": False}
        assert not backend.requests("PUT", "/invoices/12")

    async def test_status_change(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/invoices/12", _invoice(status="Pending"))
        backend.add("PUT", "/invoices/12")
        response = await client.put(
            "/api/v1/invoices/12/status", json={"status": "Paid"}, headers=auth_headers("finance")
        )
        assert response.json()["data"]["changed"] is True
        assert backend.last_json("PUT", "/invoices/12") == {"status": "Paid"}

    async def test_delete(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/invoices/12", _invoice())
        backend.add("DELETE", "/invoices/12")
        response = await client.delete("/api/v1/invoices/12", headers=auth_headers("admin"))
        assert response.status_code == 200
        assert response.json()["message"] == "Invoice deleted successfully"


class TestInvoiceItemsAndStudents:
    async def test_add_item_returns_refreshed_detail(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/invoices/12", _invoice(items=[{"invoice_item_id": 1, "description": "Books", "amount": 100}]))
        backend.add("POST", "/invoices/12/items")
        response = await client.post(
            "/api/v1/invoices/12/items",
            json={"description": "Books", "amount": 100},
            headers=auth_headers("superadmin"),
        )
        assert response.status_code == 200
        assert response.json()["data"]["expanded_items"][0]["description"] == "Books"
        assert backend.last_json("POST", "/invoices/12/items")["amount"] == 100.0

    async def test_remove_item(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/invoices/12", _invoice())
        backend.add("DELETE", "/invoices/12/items/1")
        response = await client.delete("/api/v1/invoices/12/items/1", headers=auth_headers("superadmin"))
        assert response.status_code == 200
        assert response.json()["message"] == "Item removed"

    async def test_add_student_requires_selection(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/v1/invoices/12/students", json={"student_id": ""}, headers=auth_headers("superadmin")
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Please select a student"

    async def test_add_duplicate_student(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/invoices/12", _invoice(students=[{"student_id": 6}]))
        response = await client.post(
            "/api/v1/invoices/12/students", json={"student_id": 6}, headers=auth_headers("superadmin")
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Student is already added"

    async def test_add_and_remove_student(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/invoices/12", _invoice())
        backend.add("POST", "/invoices/12/students")
        backend.add("DELETE", "/invoices/12/students/8")
        response = await client.post(
            "/api/v1/invoices/12/students", json={"student_id": "8"}, headers=auth_headers("superadmin")
        )
        assert response.status_code == 200
        assert backend.last_json("POST", "/invoices/12/students") == {"student_id": 8}

        response = await client.delete("/api/v1/invoices/12/students/8", headers=auth_headers("superadmin"))
        assert response.status_code == 200

    async def test_admin_student_options_own_branch(self, client: AsyncClient, backend, auth_headers):
        backend.add(
            "GET",
            "/users",
            {
                "success": True,
                "data": [
                    {"user_id": 6, "user_type": "Student", "branch_id": 1},
                    {"user_id": 7, "user_type": "Student", "branch_id": 2},
                    {"user_id": 2, "user_type": "Admin", "branch_id": 1},
                ],
            },
        )
        response = await client.get("/api/v1/invoices/students", headers=auth_headers("admin"))
        assert [u["user_id"] for u in response.json()["data"]] == [6]


class TestInvoicePdfAndPayments:
    async def test_pdf_download(self, client: AsyncClient, backend, auth_headers):
        backend.add(
            "GET",
            "/invoices/12/pdf",
            handler=lambda request: httpx.Response(
                200, content=b"%PDF-1.4 fake", headers={"content-type": "application/pdf"}
            ),
        )
        response = await client.get("/api/v1/invoices/12/pdf", headers=auth_headers("finance"))
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert 'filename="invoice_INV-12.pdf"' in response.headers["content-disposition"]
        assert response.content == b"%PDF-1.4 fake"

    async def test_payment_form_defaults(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/invoices/12", _invoice(students=[{"student_id": 6}, {"student_id": 8}]))
        response = await client.get("/api/v1/invoices/12/payment-form", headers=auth_headers("finance"))
        data = response.json()["data"]
        assert data["student_id"] == 6
        assert data["payment_method"] == "Cash"
        assert data["payable_amount"] == 5200.0
        assert len(data["issue_date"]) == 10

    async def test_record_payment(self, client: AsyncClient, backend, auth_headers):
        backend.add("POST", "/payments", {"success": True, "data": {"payment_id": 3}})
        response = await client.post(
            "/api/v1/invoices/12/payments",
            json={
                "student_id": 6,
                "payment_method": "E-wallets",
                "payment_type": "Full Payment",
                "payable_amount": "5200",
                "issue_date": "2026-10-19",
                "reference_number": "GC-1",
            },
            headers=auth_headers("finance"),
        )
        assert response.status_code == 201
        assert response.json()["message"] == "Payment recorded successfully!"
        payload = backend.last_json("POST", "/payments")
        assert payload["invoice_id"] == 12
        assert payload["reference_number"] == "GC-1"
