"""API for merchandise inventory, stock requests and product images."""

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from school_portal.core.api_client import ApiClient, get_api_client
from school_portal.core.auth import CurrentUser, UserRole, require_roles
from school_portal.core.auth.dependencies import AdminUser, SuperAdminUser
from school_portal.modules.merchandise.schemas import (
    ApproveRequestForm,
    BulkResult,
    CategoryPreset,
    MerchandiseForm,
    MerchandiseTypeList,
    RejectRequestForm,
    StockList,
    StockRequestDefaults,
    StockRequestForm,
    StockRequestList,
    TypeImageUpdate,
    UploadedImage,
)
from school_portal.modules.merchandise.service import (
    CATEGORY_PRESETS,
    MerchandiseService,
    StockRequestService,
)
from school_portal.shared.schemas.base import ApiResponse, Record

router = APIRouter(prefix="/merchandise", tags=["Merchandise"])

RequesterUser = Depends(require_roles(UserRole.ADMIN))


# --- Inventory ---


@router.get("", response_model=ApiResponse[MerchandiseTypeList])
async def list_merchandise_types(
    current_user: AdminUser,
    branch_id: int | None = Query(None, description="Ignored for Admins (own branch)."),
    api: ApiClient = Depends(get_api_client),
):
    """Merchandise types of a branch with their cover image."""
    service = MerchandiseService(api, current_user)
    return ApiResponse(data=await service.list_types(branch_id))


@router.get("/categories", response_model=ApiResponse[list[CategoryPreset]])
async def list_categories(current_user: AdminUser):
    return ApiResponse(data=list(CATEGORY_PRESETS.values()))


@router.get("/stocks", response_model=ApiResponse[StockList])
async def list_stocks(
    current_user: AdminUser,
    name: str = Query(..., description="merchandise_name of the type."),
    branch_id: int | None = Query(None),
    api: ApiClient = Depends(get_api_client),
):
    service = MerchandiseService(api, current_user)
    return ApiResponse(data=await service.list_stocks(name, branch_id))


@router.post("", response_model=ApiResponse[Record], status_code=201)
async def create_merchandise(
    current_user: AdminUser,
    form: MerchandiseForm,
    api: ApiClient = Depends(get_api_client),
):
    service = MerchandiseService(api, current_user)
    data = await service.create(form)
    return ApiResponse(data=data, message="Merchandise created successfully")


@router.put("/types/image", response_model=ApiResponse[BulkResult])
async def update_type_image(
    current_user: AdminUser,
    body: TypeImageUpdate,
    api: ApiClient = Depends(get_api_client),
):
    """Set one image on every stock row of a type."""
    service = MerchandiseService(api, current_user)
    return ApiResponse(data=await service.update_type_image(body))


@router.delete("/types", response_model=ApiResponse[BulkResult])
async def delete_type(
    current_user: AdminUser,
    name: str = Query(...),
    branch_id: int | None = Query(None),
    api: ApiClient = Depends(get_api_client),
):
    """Delete all stock rows of a type in the branch."""
    service = MerchandiseService(api, current_user)
    return ApiResponse(data=await service.delete_type(name, branch_id))


@router.post("/images", response_model=ApiResponse[UploadedImage], status_code=201)
async def upload_merchandise_image(
    current_user: AdminUser,
    image: UploadFile = File(...),
    merchandise_name: str | None = Form(None),
    merchandise_id: int | None = Form(None),
    api: ApiClient = Depends(get_api_client),
):
    """Store a product image (backend puts it in object storage)."""
    service = MerchandiseService(api, current_user)
    data = await service.upload_image(image, merchandise_name, merchandise_id)
    return ApiResponse(data=data, message="Image uploaded successfully")


# --- Stock requests ---


@router.get("/requests", response_model=ApiResponse[StockRequestList])
async def list_stock_requests(
    current_user: AdminUser,
    status: str | None = Query(None),
    api: ApiClient = Depends(get_api_client),
):
    service = StockRequestService(api, current_user)
    return ApiResponse(data=await service.list_requests(status))


@router.get("/requests/form", response_model=ApiResponse[StockRequestDefaults])
async def get_stock_request_form(
    name: str | None = Query(None),
    size: str | None = Query(None),
    gender: str | None = Query(None),
    type: str | None = Query(None),
    api: ApiClient = Depends(get_api_client),
    current_user: CurrentUser = RequesterUser,
):
    service = StockRequestService(api, current_user)
    return ApiResponse(data=await service.form_defaults(name, size, gender, type))


@router.post("/requests", response_model=ApiResponse[Record], status_code=201)
async def create_stock_request(
    form: StockRequestForm,
    api: ApiClient = Depends(get_api_client),
    current_user: CurrentUser = RequesterUser,
):
    service = StockRequestService(api, current_user)
    data = await service.create(form)
    return ApiResponse(data=data, message="Stock request submitted successfully! Superadmin will be notified.")


@router.put("/requests/{request_id}/cancel", response_model=ApiResponse[Record])
async def cancel_stock_request(
    request_id: int,
    api: ApiClient = Depends(get_api_client),
    current_user: CurrentUser = RequesterUser,
):
    service = StockRequestService(api, current_user)
    return ApiResponse(data=await service.cancel(request_id), message="Request cancelled successfully")


@router.put("/requests/{request_id}/approve", response_model=ApiResponse[Record])
async def approve_stock_request(
    current_user: SuperAdminUser,
    request_id: int,
    form: ApproveRequestForm,
    api: ApiClient = Depends(get_api_client),
):
    service = StockRequestService(api, current_user)
    data = await service.approve(request_id, form)
    return ApiResponse(data=data, message="Request approved successfully! Admin will be notified.")


@router.put("/requests/{request_id}/reject", response_model=ApiResponse[Record])
async def reject_stock_request(
    current_user: SuperAdminUser,
    request_id: int,
    form: RejectRequestForm,
    api: ApiClient = Depends(get_api_client),
):
    service = StockRequestService(api, current_user)
    data = await service.reject(request_id, form)
    return ApiResponse(data=data, message="Request rejected. Admin will be notified.")


# --- Single stock row (after the fixed paths above) ---


@router.put("/{merchandise_id}", response_model=ApiResponse[Record])
async def update_merchandise(
    current_user: AdminUser,
    merchandise_id: int,
    form: MerchandiseForm,
    api: ApiClient = Depends(get_api_client),
):
    service = MerchandiseService(api, current_user)
    data = await service.update(merchandise_id, form)
    return ApiResponse(data=data, message="Merchandise updated successfully")


@router.delete("/{merchandise_id}", response_model=ApiResponse[None])
async def delete_merchandise(
    current_user: AdminUser,
    merchandise_id: int,
    api: ApiClient = Depends(get_api_client),
):
    service = MerchandiseService(api, current_user)
    await service.delete(merchandise_id)
    return ApiResponse(data=None, message="Merchandise deleted successfully")
