from datetime import date

from fastapi import APIRouter, Depends, Query

from school_portal.core.api_client import ApiClient, get_api_client
from school_portal.core.auth.dependencies import BillingUser
from school_portal.modules.installment_invoices.schemas import (
    GenerateInvoiceForm,
    GenerationSchedule,
    InstallmentInvoiceList,
)
from school_portal.modules.installment_invoices.service import (
    InstallmentInvoiceService,
    generation_defaults,
    schedule_from_issue_date,
    schedule_from_next_invoice_month,
)
from school_portal.shared.schemas.base import ApiResponse, Record
from school_portal.shared.utils.dates import today_manila

router = APIRouter(prefix="/installment-invoices", tags=["Installment Invoices"])


@router.get("", response_model=ApiResponse[InstallmentInvoiceList])
async def list_installment_invoices(
    current_user: BillingUser,
    search: str | None = Query(None, description="Student or program name."),
    status: str | None = Query(None),
    api: ApiClient = Depends(get_api_client),
):
    service = InstallmentInvoiceService(api)
    return ApiResponse(data=await service.list_invoices(search=search, status=status))


@router.get("/{installment_id}/generation-defaults", response_model=ApiResponse[GenerationSchedule])
async def get_generation_defaults(
    current_user: BillingUser,
    installment_id: int,
    issue_date: date | None = Query(None, description="Recompute the schedule for this issue date."),
    next_invoice_month: date | None = Query(None, description="Recompute the next invoice dates for this month."),
    frequency: str | None = Query(None, description="e.g. '1 month(s)'; looked up when omitted."),
    api: ApiClient = Depends(get_api_client),
):
    """Prefilled generate-invoice form."""
    if frequency is None:
        frequency = await InstallmentInvoiceService(api).get_frequency(installment_id)
    if issue_date is not None:
        data = schedule_from_issue_date(frequency, issue_date)
    else:
        data = generation_defaults(frequency, today_manila())
    if next_invoice_month is not None:
        data = schedule_from_next_invoice_month(data, next_invoice_month)
    return ApiResponse(data=data)


@router.post("/{installment_id}/generate", response_model=ApiResponse[Record], status_code=201)
async def generate_installment_invoice(
    current_user: BillingUser,
    installment_id: int,
    form: GenerateInvoiceForm,
    api: ApiClient = Depends(get_api_client),
):
    """Backend decides whether the next phase may be generated."""
    service = InstallmentInvoiceService(api)
    data = await service.generate(installment_id, form)
    return ApiResponse(data=data, message="Invoice generated successfully!")
