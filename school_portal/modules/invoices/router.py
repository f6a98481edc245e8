"""API for invoices: list/detail, line items, linked students, PDF and payments."""

from fastapi import APIRouter, Depends, Query, Response

from school_portal.core.api_client import ApiClient, get_api_client
from school_portal.core.auth.dependencies import BillingUser, FinanceUser
from school_portal.modules.invoices.schemas import (
    InvoiceDetail,
    InvoiceForm,
    InvoiceItemForm,
    InvoiceList,
    InvoiceStatusUpdate,
    InvoiceStudentAdd,
    PaymentForm,
    PaymentFormDefaults,
    StatusUpdateResult,
)
from school_portal.modules.invoices.service import InvoiceService
from school_portal.shared.schemas.base import ApiResponse, Record

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.get("", response_model=ApiResponse[InvoiceList])
async def list_invoices(
    current_user: FinanceUser,
    search: str | None = Query(None, description="INV-<id>, id or description."),
    status: str | None = Query(None),
    branch_id: int | None = Query(None, description="Ignored for Admins (own branch)."),
    api: ApiClient = Depends(get_api_client),
):
    service = InvoiceService(api, current_user)
    data = await service.list_invoices(search=search, status=status, branch_id=branch_id)
    return ApiResponse(data=data)


@router.get("/students", response_model=ApiResponse[list[Record]])
async def list_invoice_students(
    current_user: BillingUser,
    api: ApiClient = Depends(get_api_client),
):
    """Students selectable on an invoice."""
    service = InvoiceService(api, current_user)
    return ApiResponse(data=await service.list_students())


@router.post("", response_model=ApiResponse[Record], status_code=201)
async def create_invoice(
    current_user: BillingUser,
    form: InvoiceForm,
    api: ApiClient = Depends(get_api_client),
):
    service = InvoiceService(api, current_user)
    data = await service.create_invoice(form)
    return ApiResponse(data=data, message="Invoice created successfully")


@router.get("/{invoice_id}", response_model=ApiResponse[InvoiceDetail])
async def get_invoice(
    current_user: FinanceUser,
    invoice_id: int,
    api: ApiClient = Depends(get_api_client),
):
    """Invoice with package items expanded into their inclusions."""
    service = InvoiceService(api, current_user)
    return ApiResponse(data=await service.get_invoice(invoice_id))


@router.put("/{invoice_id}", response_model=ApiResponse[Record])
async def update_invoice(
    current_user: BillingUser,
    invoice_id: int,
    form: InvoiceForm,
    api: ApiClient = Depends(get_api_client),
):
    """Header fields only; items and students have their own endpoints."""
    service = InvoiceService(api, current_user)
    data = await service.update_invoice(invoice_id, form)
    return ApiResponse(data=data, message="Invoice updated successfully")


@router.put("/{invoice_id}/status", response_model=ApiResponse[StatusUpdateResult])
async def update_invoice_status(
    current_user: BillingUser,
    invoice_id: int,
    body: InvoiceStatusUpdate,
    api: ApiClient = Depends(get_api_client),
):
    service = InvoiceService(api, current_user)
    return ApiResponse(data=await service.update_status(invoice_id, body.status))


@router.delete("/{invoice_id}", response_model=ApiResponse[None])
async def delete_invoice(
    current_user: BillingUser,
    invoice_id: int,
    api: ApiClient = Depends(get_api_client),
):
    """Backend also removes the invoice's items and student links."""
    service = InvoiceService(api, current_user)
    await service.delete_invoice(invoice_id)
    return ApiResponse(data=None, message="Invoice deleted successfully")


@router.post("/{invoice_id}/items", response_model=ApiResponse[InvoiceDetail])
async def add_invoice_item(
    current_user: BillingUser,
    invoice_id: int,
    item: InvoiceItemForm,
    api: ApiClient = Depends(get_api_client),
):
    service = InvoiceService(api, current_user)
    return ApiResponse(data=await service.add_item(invoice_id, item), message="Item added")


@router.delete("/{invoice_id}/items/{item_id}", response_model=ApiResponse[InvoiceDetail])
async def remove_invoice_item(
    current_user: BillingUser,
    invoice_id: int,
    item_id: int,
    api: ApiClient = Depends(get_api_client),
):
    service = InvoiceService(api, current_user)
    return ApiResponse(data=await service.remove_item(invoice_id, item_id), message="Item removed")


@router.post("/{invoice_id}/students", response_model=ApiResponse[InvoiceDetail])
async def add_invoice_student(
    current_user: BillingUser,
    invoice_id: int,
    body: InvoiceStudentAdd,
    api: ApiClient = Depends(get_api_client),
):
    service = InvoiceService(api, current_user)
    data = await service.add_student(invoice_id, body.student_id)
    return ApiResponse(data=data, message="Student added")


@router.delete("/{invoice_id}/students/{student_id}", response_model=ApiResponse[InvoiceDetail])
async def remove_invoice_student(
    current_user: BillingUser,
    invoice_id: int,
    student_id: int,
    api: ApiClient = Depends(get_api_client),
):
    service = InvoiceService(api, current_user)
    data = await service.remove_student(invoice_id, student_id)
    return ApiResponse(data=data, message="Student removed")


@router.get("/{invoice_id}/pdf")
async def download_invoice_pdf(
    current_user: FinanceUser,
    invoice_id: int,
    api: ApiClient = Depends(get_api_client),
):
    """Invoice PDF rendered by the backend."""
    service = InvoiceService(api, current_user)
    content, filename = await service.download_pdf(invoice_id)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


@router.get("/{invoice_id}/payment-form", response_model=ApiResponse[PaymentFormDefaults])
async def get_payment_form(
    current_user: BillingUser,
    invoice_id: int,
    api: ApiClient = Depends(get_api_client),
):
    """Prefilled record-payment modal: first student, invoice amount, today."""
    service = InvoiceService(api, current_user)
    return ApiResponse(data=await service.payment_form_defaults(invoice_id))


@router.post("/{invoice_id}/payments", response_model=ApiResponse[Record], status_code=201)
async def record_payment(
    current_user: BillingUser,
    invoice_id: int,
    form: PaymentForm,
    api: ApiClient = Depends(get_api_client),
):
    service = InvoiceService(api, current_user)
    data = await service.record_payment(invoice_id, form)
    return ApiResponse(data=data, message="Payment recorded successfully!")
