"""Service for Merchandise module: branch inventory, stock requests and images."""

import logging
from typing import Any

from fastapi import UploadFile

from school_portal.core.api_client import ApiClient
from school_portal.core.auth import CurrentUser, ensure_branch_access, scoped_branch_id
from school_portal.core.config import settings
from school_portal.core.exceptions import FormValidationError, ValidationError
from school_portal.modules.merchandise.schemas import (
    ApproveRequestForm,
    BulkResult,
    CategoryPreset,
    MerchandiseCategory,
    MerchandiseForm,
    MerchandiseType,
    MerchandiseTypeList,
    RejectRequestForm,
    StockList,
    StockRequestDefaults,
    StockRequestForm,
    StockRequestList,
    StockRow,
    TypeImageUpdate,
    UploadedImage,
)
from school_portal.shared.utils.money import parse_amount
from school_portal.shared.utils.text import clean_text

logger = logging.getLogger(__name__)

NO_SIZE = "N/A"

CATEGORY_PRESETS = {
    MerchandiseCategory.UNIFORM_SCHOOL: CategoryPreset(
        category=MerchandiseCategory.UNIFORM_SCHOOL.value,
        merchandise_name="School Uniform",
        requires_sizing=True,
        description="School uniform with Top/Bottom, Size, Gender",
    ),
    MerchandiseCategory.UNIFORM_PE: CategoryPreset(
        category=MerchandiseCategory.UNIFORM_PE.value,
        merchandise_name="PE Uniform",
        requires_sizing=True,
        description="PE uniform with Top/Bottom, Size, Gender",
    ),
    MerchandiseCategory.OTHER: CategoryPreset(
        category=MerchandiseCategory.OTHER.value,
        merchandise_name="",
        requires_sizing=False,
        description="Other items (bags, books, ...)",
    ),
}


def is_uniform(name: str | None) -> bool:
    return bool(name) and "uniform" in name.lower()


def _parse_int(value: Any) -> int | None:
    """Whole number from a form field; None when blank or not an integer."""
    amount = parse_amount(value)
    if amount is None or amount != amount.to_integral_value():
        return None
    return int(amount)


def stock_row(item: dict[str, Any]) -> StockRow:
    return StockRow(
        merchandise_id=item["merchandise_id"],
        size=item.get("size") or NO_SIZE,
        quantity=item.get("quantity") or 0,
        price=float(parse_amount(item.get("price")) or 0),
        gender=item.get("gender") or "",
        type=item.get("type") or "",
        image_url=item.get("image_url"),
    )


def stocks_for(items: list[dict[str, Any]], name: str, branch_id: int | None = None) -> list[StockRow]:
    return [
        stock_row(item)
        for item in items
        if item.get("merchandise_name") == name
        and (branch_id is None or item.get("branch_id") == branch_id)
    ]


def requires_sizing(name: str | None, stocks: list[StockRow]) -> bool:
    """Uniforms, or any type already stocked in real sizes."""
    if not name:
        return False
    if is_uniform(name):
        return True
    return any(s.size and s.size != NO_SIZE and s.size.strip() for s in stocks)


def merchandise_types(items: list[dict[str, Any]], branch_id: int | None = None) -> list[MerchandiseType]:
    """Unique names in the branch, each with the first image found among its rows."""
    grouped: dict[str, list[dict[str, Any]]] = {}
    for item in items:
        name = item.get("merchandise_name")
        if not name or (branch_id is not None and item.get("branch_id") != branch_id):
            continue
        grouped.setdefault(name, []).append(item)

    types = []
    for name, rows in grouped.items():
        stocks = [stock_row(r) for r in rows]
        types.append(
            MerchandiseType(
                name=name,
                image_url=next((r["image_url"] for r in rows if r.get("image_url")), None),
                stock_count=len(rows),
                total_quantity=sum(s.quantity for s in stocks),
                requires_sizing=requires_sizing(name, stocks),
            )
        )
    return sorted(types, key=lambda t: t.name.lower())


class MerchandiseService:
    """Branch inventory of merchandise (uniforms, books, ...)."""

    def __init__(self, api: ApiClient, user: CurrentUser):
        self.api = api
        self.user = user

    async def branch_items(self, branch_id: int | None) -> list[dict[str, Any]]:
        body = await self.api.get("/merchandise", {"branch_id": branch_id, "limit": 100})
        return body.get("data") or []

    async def list_types(self, branch_id: int | None = None) -> MerchandiseTypeList:
        branch_id = scoped_branch_id(self.user, branch_id)
        items = await self.branch_items(branch_id)
        return MerchandiseTypeList(branch_id=branch_id, types=merchandise_types(items, branch_id))

    async def list_stocks(self, name: str, branch_id: int | None = None) -> StockList:
        branch_id = scoped_branch_id(self.user, branch_id)
        stocks = stocks_for(await self.branch_items(branch_id), name, branch_id)
        return StockList(
            branch_id=branch_id,
            merchandise_name=name,
            requires_sizing=requires_sizing(name, stocks),
            stocks=stocks,
        )

    def build_payload(self, form: MerchandiseForm) -> dict[str, Any]:
        errors: dict[str, str] = {}
        name = clean_text(form.merchandise_name)
        if not name:
            errors["merchandise_name"] = "Merchandise name is required"
        quantity = None
        if form.quantity not in (None, ""):
            quantity = _parse_int(form.quantity)
            if quantity is None or quantity < 0:
                errors["quantity"] = "Quantity must be a non-negative integer"
        price = None
        if form.price not in (None, ""):
            price = parse_amount(form.price)
            if price is None or price < 0:
                errors["price"] = "Price must be a positive number"
        if errors:
            raise FormValidationError(errors)

        if self.user.is_admin:
            branch_id = self.user.branch_id
        else:
            branch_id = _parse_int(form.branch_id)
        return {
            "merchandise_name": name,
            "size": clean_text(form.size),
            "quantity": quantity,
            "price": float(price) if price is not None else None,
            "branch_id": branch_id,
            "gender": clean_text(form.gender),
            "type": clean_text(form.type),
            "image_url": form.image_url or None,
        }

    async def _get_owned(self, merchandise_id: int, action: str) -> dict[str, Any]:
        body = await self.api.get(f"/merchandise/{merchandise_id}")
        item = body.get("data") or {}
        ensure_branch_access(self.user, item.get("branch_id"), action, "merchandise")
        return item

    async def create(self, form: MerchandiseForm) -> dict[str, Any]:
        body = await self.api.post("/merchandise", self.build_payload(form))
        return body.get("data") or {}

    async def update(self, merchandise_id: int, form: MerchandiseForm) -> dict[str, Any]:
        payload = self.build_payload(form)
        await self._get_owned(merchandise_id, "edit")
        body = await self.api.put(f"/merchandise/{merchandise_id}", payload)
        return body.get("data") or {}

    async def delete(self, merchandise_id: int) -> None:
        await self._get_owned(merchandise_id, "delete")
        await self.api.delete(f"/merchandise/{merchandise_id}")

    async def _type_rows(self, name: str, branch_id: int | None) -> tuple[int | None, list[dict[str, Any]]]:
        branch_id = scoped_branch_id(self.user, branch_id)
        if branch_id is None:
            raise ValidationError("Branch is required", field="branch_id")
        rows = [
            item
            for item in await self.branch_items(branch_id)
            if item.get("branch_id") == branch_id and item.get("merchandise_name") == name
        ]
        return branch_id, rows

    async def update_type_image(self, body: TypeImageUpdate) -> BulkResult:
        """Every stock row of the type gets the same image."""
        _, rows = await self._type_rows(body.merchandise_name, body.branch_id)
        for row in rows:
            await self.api.put(f"/merchandise/{row['merchandise_id']}", {"image_url": body.image_url or None})
        return BulkResult(merchandise_name=body.merchandise_name, affected=len(rows))

    async def delete_type(self, name: str, branch_id: int | None = None) -> BulkResult:
        _, rows = await self._type_rows(name, branch_id)
        for row in rows:
            await self.api.delete(f"/merchandise/{row['merchandise_id']}")
        logger.info("Deleted %d stock rows of %r", len(rows), name)
        return BulkResult(merchandise_name=name, affected=len(rows))

    async def upload_image(
        self, file: UploadFile, merchandise_name: str | None = None, merchandise_id: int | None = None
    ) -> UploadedImage:
        content_type = file.content_type or ""
        if not content_type.startswith("image/"):
            raise ValidationError("Please select a valid image file", field="image")
        limit = settings.merchandise_image_max_bytes
        too_large = ValidationError(f"Image size must be less than {limit // (1024 * 1024)}MB", field="image")
        if file.size is not None and file.size > limit:
            raise too_large
        content = await file.read(limit + 1)
        if len(content) > limit:
            raise too_large

        files = {"image": (file.filename or "merchandise.jpg", content, content_type)}
        data = {"merchandiseName": merchandise_name or "merchandise"}
        if merchandise_id is not None:
            data["merchandiseId"] = str(merchandise_id)
        body = await self.api.post_multipart("/upload/merchandise-image", files, data)
        image_url = body.get("imageUrl") or (body.get("data") or {}).get("imageUrl")
        if not image_url:
            raise ValidationError("Upload did not return an image URL", field="image")
        return UploadedImage(image_url=image_url)


class StockRequestService:
    """Admins ask for stock; the Superadmin approves (with a price) or rejects."""

    def __init__(self, api: ApiClient, user: CurrentUser):
        self.api = api
        self.user = user

    async def list_requests(self, status: str | None = None) -> StockRequestList:
        body = await self.api.get("/merchandise-requests")
        requests = body.get("data") or []
        items = [r for r in requests if not status or r.get("status") == status]
        return StockRequestList(items=items, total=len(requests))

    async def _branch_stocks(self, name: str | None) -> list[StockRow]:
        if not name:
            return []
        inventory = MerchandiseService(self.api, self.user)
        branch_id = scoped_branch_id(self.user, None)
        return stocks_for(await inventory.branch_items(branch_id), name, branch_id)

    async def form_defaults(
        self,
        name: str | None = None,
        size: str | None = None,
        gender: str | None = None,
        type: str | None = None,
    ) -> StockRequestDefaults:
        """Blank form, or one prefilled from a stock row ('Request more')."""
        stocks = await self._branch_stocks(name)
        return StockRequestDefaults(
            merchandise_name=name or "",
            size="" if not size or size == NO_SIZE else size,
            gender=gender or "",
            type=type or "",
            requires_sizing=requires_sizing(name, stocks),
            is_uniform=is_uniform(name),
        )

    async def build_payload(self, form: StockRequestForm) -> dict[str, Any]:
        name = clean_text(form.merchandise_name)
        stocks = await self._branch_stocks(name)
        sizing = requires_sizing(name, stocks)

        errors: dict[str, str] = {}
        if not name:
            errors["merchandise_name"] = "Merchandise name is required"
        size = clean_text(form.size) if sizing else None
        if sizing and not size:
            errors["size"] = "Size is required for this merchandise type"
        quantity = _parse_int(form.requested_quantity)
        if quantity is None or quantity <= 0:
            errors["requested_quantity"] = "Requested quantity must be greater than 0"
        reason = clean_text(form.request_reason)
        if not reason:
            errors["request_reason"] = "Request reason is required"
        if errors:
            raise FormValidationError(errors)

        uniform = is_uniform(name)
        return {
            "merchandise_name": name,
            "size": size,
            "requested_quantity": quantity,
            "request_reason": reason,
            "gender": clean_text(form.gender) if uniform else None,
            "type": clean_text(form.type) if uniform else None,
        }

    async def create(self, form: StockRequestForm) -> dict[str, Any]:
        body = await self.api.post("/merchandise-requests", await self.build_payload(form))
        return body.get("data") or {}

    async def cancel(self, request_id: int) -> dict[str, Any]:
        body = await self.api.put(f"/merchandise-requests/{request_id}/cancel")
        return body.get("data") or {}

    async def approve(self, request_id: int, form: ApproveRequestForm) -> dict[str, Any]:
        price = parse_amount(form.price)
        if price is None or price <= 0:
            raise FormValidationError({"price": "Price is required and must be greater than 0"})
        body = await self.api.put(
            f"/merchandise-requests/{request_id}/approve",
            {"review_notes": form.review_notes, "price": float(price)},
        )
        return body.get("data") or {}

    async def reject(self, request_id: int, form: RejectRequestForm) -> dict[str, Any]:
        notes = clean_text(form.review_notes)
        if not notes:
            raise FormValidationError({"review_notes": "Please provide a reason for rejection"})
        body = await self.api.put(f"/merchandise-requests/{request_id}/reject", {"review_notes": notes})
        return body.get("data") or {}
