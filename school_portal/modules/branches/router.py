from fastapi import APIRouter, Depends

from school_portal.core.api_client import ApiClient, get_api_client
from school_portal.core.auth.dependencies import StaffUser
from school_portal.modules.branches.service import BranchService
from school_portal.shared.schemas.base import ApiResponse, Record

router = APIRouter(prefix="/branches", tags=["Branches"])


@router.get("", response_model=ApiResponse[list[Record]])
async def list_branches(
    current_user: StaffUser,
    api: ApiClient = Depends(get_api_client),
):
    """Branch options for filters and forms."""
    service = BranchService(api)
    return ApiResponse(data=await service.list_branches())
