"""API for financial reporting: dashboards and payment logs."""

from fastapi import APIRouter, Depends, Query, Response

from school_portal.core.api_client import ApiClient, get_api_client
from school_portal.core.auth.dependencies import AdminUser, FinanceUser
from school_portal.modules.reports.excel_export import export_payment_logs, payment_logs_filename
from school_portal.modules.reports.schemas import (
    BranchDashboardResponse,
    FinanceSummaryResponse,
    PaymentLogList,
)
from school_portal.modules.reports.service import ReportsService
from school_portal.shared.schemas.base import ApiResponse
from school_portal.shared.utils.dates import today_manila

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/finance-summary", response_model=ApiResponse[FinanceSummaryResponse])
async def get_finance_summary(
    current_user: FinanceUser,
    branch_id: int | None = Query(None, description="Omit for all branches."),
    api: ApiClient = Depends(get_api_client),
):
    """
    Finance dashboard: revenue from completed payments, pending/unpaid
    invoice counts, top 5 branches by revenue, latest invoices and payments.

    Access: Superadmin, Admin (own branch), Finance, Superfinance.
    """
    service = ReportsService(api, current_user)
    return ApiResponse(data=await service.finance_summary(branch_id))


@router.get("/branch-dashboard", response_model=ApiResponse[BranchDashboardResponse])
async def get_branch_dashboard(
    current_user: AdminUser,
    branch_id: int | None = Query(None, description="Ignored for Admins (own branch)."),
    api: ApiClient = Depends(get_api_client),
):
    """Operational dashboard of one branch."""
    service = ReportsService(api, current_user)
    return ApiResponse(data=await service.branch_dashboard(branch_id))


@router.get("/payment-logs", response_model=ApiResponse[PaymentLogList])
async def get_payment_logs(
    current_user: FinanceUser,
    search: str | None = Query(None, description="Description, student, reference or payment id."),
    status: str | None = Query(None),
    payment_method: str | None = Query(None),
    api: ApiClient = Depends(get_api_client),
):
    service = ReportsService(api, current_user)
    data = await service.payment_logs(search=search, status=status, payment_method=payment_method)
    return ApiResponse(data=data)


@router.get("/payment-logs/export")
async def export_payment_logs_xlsx(
    current_user: FinanceUser,
    api: ApiClient = Depends(get_api_client),
):
    """Every payment the caller can see, as an Excel workbook."""
    service = ReportsService(api, current_user)
    payments = await service.all_payments()
    content = export_payment_logs(payments)
    filename = payment_logs_filename(await service.export_branch_name(), today_manila())
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
