"""Service for Reports module: finance dashboard, branch dashboard, payment logs."""

import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from school_portal.core.api_client import ApiClient
from school_portal.core.auth import CurrentUser, scoped_branch_id
from school_portal.core.exceptions import AppException
from school_portal.modules.reports.schemas import (
    BranchDashboardResponse,
    BranchRevenue,
    CrossingProcedures,
    DashboardTotals,
    FinanceSummaryResponse,
    PaymentLogList,
)
from school_portal.shared.utils.dates import parse_timestamp
from school_portal.shared.utils.money import parse_amount, round_money
from school_portal.shared.utils.text import format_branch_name, matches_search, unique_values

logger = logging.getLogger(__name__)

COMPLETED = "Completed"
PENDING_INVOICE_STATUSES = ("Unpaid", "Partial")
TOP_BRANCHES = 5
RECENT_COUNT = 3
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _amount(value: Any) -> Decimal:
    return parse_amount(value) or Decimal("0")


def most_recent(records: list[dict[str, Any]], key: str, count: int = RECENT_COUNT) -> list[dict[str, Any]]:
    """Newest first by a date/timestamp field; missing or unparseable dates sort last."""

    def sort_key(record: dict[str, Any]) -> tuple[bool, datetime]:
        when = parse_timestamp(record.get(key))
        return when is not None, when or _EPOCH

    return sorted(records, key=sort_key, reverse=True)[:count]


def revenue_by_branch(
    payments: list[dict[str, Any]], branches: list[dict[str, Any]], top: int = TOP_BRANCHES
) -> list[BranchRevenue]:
    names = {b.get("branch_id"): b.get("branch_name") for b in branches}
    totals: dict[Any, Decimal] = {}
    labels: dict[Any, str] = {}
    for payment in payments:
        branch_id = payment.get("branch_id")
        totals[branch_id] = totals.get(branch_id, Decimal("0")) + _amount(payment.get("payable_amount"))
        labels[branch_id] = payment.get("branch_name") or names.get(branch_id) or f"Branch {branch_id}"

    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)[:top]
    result = []
    for branch_id, revenue in ranked:
        parts = format_branch_name(labels[branch_id]) or {}
        result.append(
            BranchRevenue(
                branch_id=branch_id,
                branch_name=labels[branch_id],
                company=parts.get("company"),
                location=parts.get("location"),
                revenue=float(round_money(revenue)),
            )
        )
    return result


def filter_payments(
    payments: list[dict[str, Any]],
    search: str | None = None,
    status: str | None = None,
    payment_method: str | None = None,
) -> list[dict[str, Any]]:
    result = []
    for payment in payments:
        if search and not matches_search(
            search,
            payment.get("invoice_description"),
            payment.get("student_name"),
            payment.get("reference_number"),
            payment.get("payment_id"),
        ):
            continue
        if status and payment.get("status") != status:
            continue
        if payment_method and payment.get("payment_method") != payment_method:
            continue
        result.append(payment)
    return result


class ReportsService:
    """Service for dashboards built from backend invoice/payment lists."""

    def __init__(self, api: ApiClient, user: CurrentUser):
        self.api = api
        self.user = user

    async def _branches(self) -> list[dict[str, Any]]:
        """Branch names only decorate the figures; a failure leaves them out."""
        try:
            body = await self.api.get("/branches", {"limit": 100})
        except AppException as exc:
            logger.warning("Branch list unavailable: %s", exc.message)
            return []
        return body.get("data") or []

    async def finance_summary(self, branch_id: int | None = None) -> FinanceSummaryResponse:
        branch_id = scoped_branch_id(self.user, branch_id)
        params = {"limit": 100, "branch_id": branch_id}
        invoices_body, payments_body, branches = await asyncio.gather(
            self.api.get("/invoices", params),
            self.api.get("/payments", params),
            self._branches(),
        )
        invoices = invoices_body.get("data") or []
        payments = payments_body.get("data") or []
        completed = [p for p in payments if p.get("status") == COMPLETED]

        total_revenue = sum((_amount(p.get("payable_amount")) for p in completed), Decimal("0"))
        selected_name = "All Branches"
        if branch_id is not None:
            selected_name = next(
                (b["branch_name"] for b in branches if b.get("branch_id") == branch_id and b.get("branch_name")),
                self.user.branch_name or "All Branches",
            )

        return FinanceSummaryResponse(
            branch_id=branch_id,
            selected_branch_name=selected_name,
            total_revenue=float(round_money(total_revenue)),
            completed_payments=len(completed),
            pending_invoices=sum(1 for i in invoices if i.get("status") in PENDING_INVOICE_STATUSES),
            unpaid_invoices=sum(1 for i in invoices if i.get("status") == "Unpaid"),
            total_branches=len(branches),
            revenue_by_branch=revenue_by_branch(completed, branches),
            recent_invoices=most_recent(invoices, "issue_date"),
            recent_payments=most_recent(completed, "created_at"),
        )

    async def branch_dashboard(self, branch_id: int | None = None) -> BranchDashboardResponse:
        branch_id = scoped_branch_id(self.user, branch_id)
        body = await self.api.get("/dashboard", {"branch_id": branch_id})
        metrics = body.get("data") or {}
        invoice_status = metrics.get("invoice_status") or []
        total_invoice_amount = sum(
            (_amount(row.get("total_amount")) for row in invoice_status), Decimal("0")
        )
        return BranchDashboardResponse(
            branch_id=branch_id,
            branch_name=self.user.branch_name or "Your Branch",
            totals=DashboardTotals(**(metrics.get("totals") or {})),
            monthly_enrollments=metrics.get("monthly_enrollments") or [],
            invoice_trend=metrics.get("invoice_trend") or [],
            invoice_status=invoice_status,
            reservation_status=metrics.get("reservation_status") or [],
            crossing_procedures=CrossingProcedures(**(metrics.get("crossing_procedures") or {})),
            total_invoice_amount=float(round_money(total_invoice_amount)),
        )

    async def payment_logs(
        self,
        search: str | None = None,
        status: str | None = None,
        payment_method: str | None = None,
    ) -> PaymentLogList:
        body = await self.api.get("/payments")
        payments = body.get("data") or []
        return PaymentLogList(
            items=filter_payments(payments, search, status, payment_method),
            total=len(payments),
            statuses=unique_values(payments, "status"),
            payment_methods=unique_values(payments, "payment_method"),
        )

    async def all_payments(self) -> list[dict[str, Any]]:
        payments = await self.api.get_all("/payments")
        if not payments:
            raise AppException("No payment records found to export.", status_code=404)
        return payments

    async def export_branch_name(self) -> str:
        if self.user.branch_name:
            return self.user.branch_name
        if self.user.branch_id is None:
            return "All Branches"
        try:
            body = await self.api.get(f"/branches/{self.user.branch_id}")
        except AppException:
            return "Branch"
        return (body.get("data") or {}).get("branch_name") or "Branch"
