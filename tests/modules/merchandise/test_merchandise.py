"""Tests for Merchandise API: branch inventory, images and stock requests."""

import io

import pytest
from fastapi import UploadFile
from httpx import AsyncClient
from starlette.datastructures import Headers

from school_portal.core.auth import CurrentUser
from school_portal.core.config import settings
from school_portal.core.exceptions import ValidationError
from school_portal.modules.merchandise.service import (
    MerchandiseService,
    is_uniform,
    merchandise_types,
    requires_sizing,
    stock_row,
    stocks_for,
)

ITEMS = [
    {"merchandise_id": 1, "merchandise_name": "School Uniform", "size": "S", "quantity": 10, "price": "350.00",
     "gender": "Male", "type": "Top", "branch_id": 1, "image_url": None},
    {"merchandise_id": 2, "merchandise_name": "School Uniform", "size": "M", "quantity": 5, "price": "380.00",
     "gender": "Female", "type": "Bottom", "branch_id": 1, "image_url": "https://cdn/uniform.jpg"},
    {"merchandise_id": 3, "merchandise_name": "Bag", "size": None, "quantity": 7, "price": "500",
     "branch_id": 1},
    {"merchandise_id": 4, "merchandise_name": "Book", "size": "A4", "quantity": 2, "price": "120",
     "branch_id": 1},
    {"merchandise_id": 5, "merchandise_name": "Bag", "size": None, "quantity": 3, "price": "500",
     "branch_id": 2},
]


def _inventory(backend, items=ITEMS):
    backend.add("GET", "/merchandise", {"success": True, "data": items})


class TestInventoryHelpers:
    def test_is_uniform(self):
        assert is_uniform("PE Uniform")
        assert not is_uniform("Bag")
        assert not is_uniform(None)

    def test_stock_row_defaults(self):
        row = stock_row({"merchandise_id": 3, "price": None})
        assert row.size == "N/A"
        assert row.quantity == 0
        assert row.price == 0.0
        assert row.gender == ""

    def test_requires_sizing(self):
        assert requires_sizing("School Uniform", [])
        assert requires_sizing("Book", stocks_for(ITEMS, "Book", 1))
        assert not requires_sizing("Bag", stocks_for(ITEMS, "Bag", 1))
        assert not requires_sizing(None, [])

    def test_types_grouped_per_branch(self):
        types = merchandise_types(ITEMS, 1)
        assert [t.name for t in types] == ["Bag", "Book", "School Uniform"]
        uniform = types[2]
        assert uniform.image_url == "https://cdn/uniform.jpg"
        assert uniform.stock_count == 2
        assert uniform.total_quantity == 15
        assert types[0].total_quantity == 7


class TestInventoryApi:
    """Tests for inventory endpoints."""

    async def test_admin_lists_own_branch(self, client: AsyncClient, backend, auth_headers):
        _inventory(backend)
        response = await client.get("/api/v1/merchandise?branch_id=2", headers=auth_headers("admin"))
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["branch_id"] == 1
        assert [t["name"] for t in data["types"]] == ["Bag", "Book", "School Uniform"]
        assert backend.requests("GET", "/merchandise")[0].url.params["branch_id"] == "1"

    async def test_categories(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/v1/merchandise/categories", headers=auth_headers("superadmin"))
        categories = response.json()["data"]
        assert [c["category"] for c in categories] == ["uniform_school", "uniform_pe", "other"]
        assert categories[0]["requires_sizing"] is True

    async def test_stocks_of_type(self, client: AsyncClient, backend, auth_headers):
        _inventory(backend)
        response = await client.get(
            "/api/v1/merchandise/stocks?name=Bag&branch_id=1", headers=auth_headers("superadmin")
        )
        data = response.json()["data"]
        assert data["requires_sizing"] is False
        assert [s["merchandise_id"] for s in data["stocks"]] == [3]
        assert data["stocks"][0]["size"] == "N/A"

    async def test_create_validation(self, client: AsyncClient, backend, auth_headers):
        response = await client.post(
            "/api/v1/merchandise",
            json={"merchandise_name": " ", "quantity": "-1", "price": "abc"},
            headers=auth_headers("superadmin"),
        )
        assert response.status_code == 422
        fields = {e["field"]: e["message"] for e in response.json()["errors"]}
        assert fields == {
            "merchandise_name": "Merchandise name is required",
            "quantity": "Quantity must be a non-negative integer",
            "price": "Price must be a positive number",
        }

    async def test_admin_create_own_branch(self, client: AsyncClient, backend, auth_headers):
        backend.add("POST", "/merchandise", {"success": True, "data": {"merchandise_id": 9}})
        response = await client.post(
            "/api/v1/merchandise",
            json={"merchandise_name": "Bag", "quantity": "4", "price": "499.5", "branch_id": 3},
            headers=auth_headers("admin"),
        )
        assert response.status_code == 201
        payload = backend.last_json("POST", "/merchandise")
        assert payload["branch_id"] == 1
        assert payload["quantity"] == 4
        assert payload["price"] == 499.5
        assert payload["size"] is None

    async def test_admin_cannot_edit_other_branch(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/merchandise/5", {"success": True, "data": ITEMS[4]})
        response = await client.put(
            "/api/v1/merchandise/5", json={"merchandise_name": "Bag"}, headers=auth_headers("admin")
        )
        assert response.status_code == 403
        assert response.json()["message"] == "You can only edit merchandise from your branch."

    async def test_delete_own_branch(self, client: AsyncClient, backend, auth_headers):
        backend.add("GET", "/merchandise/3", {"success": True, "data": ITEMS[2]})
        backend.add("DELETE", "/merchandise/3")
        response = await client.delete("/api/v1/merchandise/3", headers=auth_headers("admin"))
        assert response.status_code == 200
        assert len(backend.requests("DELETE", "/merchandise/3")) == 1

    async def test_type_image_needs_branch(self, client: AsyncClient, auth_headers):
        response = await client.put(
            "/api/v1/merchandise/types/image",
            json={"merchandise_name": "Bag", "image_url": "https://cdn/bag.jpg"},
            headers=auth_headers("superadmin"),
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Branch is required"

    async def test_type_image_applied_to_every_row(self, client: AsyncClient, backend, auth_headers):
        _inventory(backend)
        backend.add("PUT", "/merchandise/1")
        backend.add("PUT", "/merchandise/2")
        response = await client.put(
            "/api/v1/merchandise/types/image",
            json={"merchandise_name": "School Uniform", "image_url": "https://cdn/new.jpg"},
            headers=auth_headers("admin"),
        )
        assert response.json()["data"] == {"merchandise_name": "School Uniform", "affected": 2}
        assert backend.last_json("PUT", "/merchandise/1") == {"image_url": "https://cdn/new.jpg"}

    async def test_delete_type(self, client: AsyncClient, backend, auth_headers):
        _inventory(backend)
        backend.add("DELETE", "/merchandise/3")
        response = await client.delete(
            "/api/v1/merchandise/types?name=Bag&branch_id=1", headers=auth_headers("superadmin")
        )
        assert response.json()["data"]["affected"] == 1
        assert not backend.requests("DELETE", "/merchandise/5")

    async def test_teacher_forbidden(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/v1/merchandise", headers=auth_headers("teacher"))
        assert response.status_code == 403


class TestImageUpload:
    async def test_rejects_non_image(self, client: AsyncClient, backend, auth_headers):
        response = await client.post(
            "/api/v1/merchandise/images",
            files={"image": ("notes.txt", b"hello", "text/plain")},
            headers=auth_headers("superadmin"),
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Please select a valid image file"

    async def test_rejects_large_image(self, client: AsyncClient, backend, auth_headers, monkeypatch):
        monkeypatch.setattr(settings, "merchandise_image_max_bytes", 1024 * 1024)
        response = await client.post(
            "/api/v1/merchandise/images",
            files={"image": ("big.png", b"x" * (1024 * 1024 + 1), "image/png")},
            headers=auth_headers("superadmin"),
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Image size must be less than 1MB"

    async def test_declared_size_rejected_before_reading(self, api_client, backend, monkeypatch):
        monkeypatch.setattr(settings, "merchandise_image_max_bytes", 1024)
        stream = io.BytesIO(b"x" * 10)
        upload = UploadFile(stream, size=4096, filename="big.png", headers=Headers({"content-type": "image/png"}))
        service = MerchandiseService(api_client, CurrentUser(user_type="Superadmin"))
        with pytest.raises(ValidationError):
            await service.upload_image(upload, "Bag")
        assert stream.tell() == 0
        assert not backend.requests("POST", "/upload/merchandise-image")

    async def test_undeclared_size_read_stops_past_limit(self, api_client, backend, monkeypatch):
        monkeypatch.setattr(settings, "merchandise_image_max_bytes", 1024)
        stream = io.BytesIO(b"x" * 4096)
        upload = UploadFile(stream, filename="big.png", headers=Headers({"content-type": "image/png"}))
        service = MerchandiseService(api_client, CurrentUser(user_type="Superadmin"))
        with pytest.raises(ValidationError):
            await service.upload_image(upload, "Bag")
        assert stream.tell() == 1025

    async def test_forwards_to_backend(self, client: AsyncClient, backend, auth_headers):
        backend.add("POST", "/upload/merchandise-image", {"success": True, "imageUrl": "https://cdn/bag.png"})
        response = await client.post(
            "/api/v1/merchandise/images",
            files={"image": ("bag.png", b"\x89PNG", "image/png")},
            data={"merchandise_name": "Bag", "merchandise_id": "3"},
            headers=auth_headers("admin"),
        )
        assert response.status_code == 201
        assert response.json()["data"] == {"image_url": "https://cdn/bag.png"}
        sent = backend.requests("POST", "/upload/merchandise-image")[0]
        assert b'name="image"; filename="bag.png"' in sent.content
        assert b'name="merchandiseName"' in sent.content
        assert b'name="merchandiseId"' in sent.content


class TestStockRequests:
    """Tests for stock request endpoints."""

    async def test_list_filtered(self, client: AsyncClient, backend, auth_headers):
        backend.add(
            "GET",
            "/merchandise-requests",
            {"success": True, "data": [{"request_id": 1, "status": "Pending"}, {"request_id": 2, "status": "Approved"}]},
        )
        response = await client.get("/api/v1/merchandise/requests?status=Pending", headers=auth_headers("superadmin"))
        data = response.json()["data"]
        assert [r["request_id"] for r in data["items"]] == [1]
        assert data["total"] == 2
        assert "Cancelled" in data["statuses"]

    async def test_form_prefilled_from_stock(self, client: AsyncClient, backend, auth_headers):
        _inventory(backend)
        response = await client.get(
            "/api/v1/merchandise/requests/form?name=School%20Uniform&size=M&gender=Female&type=Bottom",
            headers=auth_headers("admin"),
        )
        data = response.json()["data"]
        assert data["merchandise_name"] == "School Uniform"
        assert data["size"] == "M"
        assert data["requires_sizing"] is True
        assert data["is_uniform"] is True

    async def test_form_no_size_placeholder_cleared(self, client: AsyncClient, backend, auth_headers):
        _inventory(backend)
        response = await client.get(
            "/api/v1/merchandise/requests/form?name=Bag&size=N/A", headers=auth_headers("admin")
        )
        assert response.json()["data"]["size"] == ""

    async def test_uniform_request_needs_size(self, client: AsyncClient, backend, auth_headers):
        _inventory(backend)
        response = await client.post(
            "/api/v1/merchandise/requests",
            json={"merchandise_name": "School Uniform", "requested_quantity": "0", "request_reason": ""},
            headers=auth_headers("admin"),
        )
        assert response.status_code == 422
        fields = {e["field"]: e["message"] for e in response.json()["errors"]}
        assert fields == {
            "size": "Size is required for this merchandise type",
            "requested_quantity": "Requested quantity must be greater than 0",
            "request_reason": "Request reason is required",
        }

    async def test_non_uniform_request_drops_gender_and_size(self, client: AsyncClient, backend, auth_headers):
        _inventory(backend)
        backend.add("POST", "/merchandise-requests", {"success": True, "data": {"request_id": 3}})
        response = await client.post(
            "/api/v1/merchandise/requests",
            json={
                "merchandise_name": "Bag",
                "size": "L",
                "requested_quantity": 5,
                "request_reason": "Running low",
                "gender": "Male",
                "type": "Top",
            },
            headers=auth_headers("admin"),
        )
        assert response.status_code == 201
        assert backend.last_json("POST", "/merchandise-requests") == {
            "merchandise_name": "Bag",
            "size": None,
            "requested_quantity": 5,
            "request_reason": "Running low",
            "gender": None,
            "type": None,
        }

    async def test_only_admin_requests(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/v1/merchandise/requests", json={}, headers=auth_headers("superadmin")
        )
        assert response.status_code == 403

    async def test_cancel(self, client: AsyncClient, backend, auth_headers):
        backend.add("PUT", "/merchandise-requests/1/cancel", {"success": True, "data": {"status": "Cancelled"}})
        response = await client.put("/api/v1/merchandise/requests/1/cancel", headers=auth_headers("admin"))
        assert response.json()["message"] == "Request cancelled successfully"

    async def test_approve_needs_price(self, client: AsyncClient, backend, auth_headers):
        response = await client.put(
            "/api/v1/merchandise/requests/1/approve", json={"price": "0"}, headers=auth_headers("superadmin")
        )
        assert response.status_code == 422
        assert response.json()["errors"][0]["message"] == "Price is required and must be greater than 0"

    async def test_approve(self, client: AsyncClient, backend, auth_headers):
        backend.add("PUT", "/merchandise-requests/1/approve", {"success": True, "data": {"status": "Approved"}})
        response = await client.put(
            "/api/v1/merchandise/requests/1/approve",
            json={"price": "350", "review_notes": "ok"},
            headers=auth_headers("superadmin"),
        )
        assert response.status_code == 200
        assert backend.last_json("PUT", "/merchandise-requests/1/approve") == {"review_notes": "ok", "price": 350.0}

    async def test_reject_needs_reason(self, client: AsyncClient, backend, auth_headers):
        response = await client.put(
            "/api/v1/merchandise/requests/1/reject", json={"review_notes": " "}, headers=auth_headers("superadmin")
        )
        assert response.status_code == 422
        assert response.json()["errors"] == [
            {"field": "review_notes", "message": "Please provide a reason for rejection"}
        ]

    async def test_admin_cannot_approve(self, client: AsyncClient, auth_headers):
        response = await client.put(
            "/api/v1/merchandise/requests/1/approve", json={"price": 1}, headers=auth_headers("admin")
        )
        assert response.status_code == 403
