"""Schemas for Reports module."""

from pydantic import Field

from school_portal.shared.schemas import BaseSchema, Record


class BranchRevenue(BaseSchema):
    branch_id: int | None
    branch_name: str
    company: str | None = None
    location: str | None = None
    revenue: float


class FinanceSummaryResponse(BaseSchema):
    """Finance dashboard cards, revenue ranking and latest activity."""

    branch_id: int | None
    selected_branch_name: str
    total_revenue: float
    completed_payments: int
    pending_invoices: int
    unpaid_invoices: int
    total_branches: int
    revenue_by_branch: list[BranchRevenue]
    recent_invoices: list[Record]
    recent_payments: list[Record]


class DashboardTotals(BaseSchema):
    total_branches: int = 0
    total_students: int = 0
    total_teachers: int = 0
    active_classes: int = 0


class CrossingProcedures(BaseSchema):
    total_violations: int = 0
    violations: list[Record] = Field(default_factory=list)


class BranchDashboardResponse(BaseSchema):
    branch_id: int | None
    branch_name: str
    totals: DashboardTotals
    monthly_enrollments: list[Record] = Field(default_factory=list)
    invoice_trend: list[Record] = Field(default_factory=list)
    invoice_status: list[Record] = Field(default_factory=list)
    reservation_status: list[Record] = Field(default_factory=list)
    crossing_procedures: CrossingProcedures
    total_invoice_amount: float


class PaymentLogList(BaseSchema):
    items: list[Record]
    total: int
    statuses: list[str]
    payment_methods: list[str]
