import json
from collections.abc import AsyncGenerator, Callable
from typing import Annotated, Any

import httpx
import pytest
from fastapi import Header
from httpx import ASGITransport, AsyncClient

from school_portal.core.api_client import ApiClient, get_api_client
from school_portal.main import app

BACKEND_URL = "http://backend"

# Bearer token -> user returned by the backend /auth/verify
USERS = {
    "superadmin": {
        "userId": 1,
        "email": "superadmin@test.com",
        "fullName": "Super Admin",
        "userType": "Superadmin",
        "branchId": None,
    },
    "admin": {
        "user_id": 2,
        "email": "admin@test.com",
        "full_name": "Branch Admin",
        "user_type": "Admin",
        "branch_id": 1,
        "branch_name": "Little Champions - Makati",
    },
    "finance": {"user_id": 3, "full_name": "Finance User", "user_type": "Finance", "branch_id": None},
    "superfinance": {"user_id": 4, "full_name": "Super Finance", "user_type": "Superfinance"},
    "teacher": {"user_id": 5, "full_name": "Teacher", "user_type": "Teacher", "branch_id": 1},
    "student": {"user_id": 6, "full_name": "Student", "user_type": "Student", "branch_id": 1},
}


class FakeBackend:
    """
    Stand-in for the school REST API behind an httpx.MockTransport.

    Routes are registered per (method, path); each entry is either a
    JSON body or a callable taking the httpx.Request. Every request is
    recorded in `calls`.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], Any] = {}
        self.calls: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        body: Any = None,
        status_code: int = 200,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> None:
        if handler is None:
            payload = {"success": True} if body is None else body

            def handler(request: httpx.Request, payload=payload, status_code=status_code) -> httpx.Response:
                return httpx.Response(status_code, json=payload)

        self.routes[(method.upper(), path)] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if request.method == "POST" and request.url.path == "/auth/verify":
            return self._verify(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"success": False, "message": "Route not found"})
        return route(request)

    @staticmethod
    def _verify(request: httpx.Request) -> httpx.Response:
        token = request.headers.get("authorization", "").replace("Bearer ", "", 1)
        user = USERS.get(token)
        if user is None:
            return httpx.Response(401, json={"success": False, "message": "Invalid or expired token"})
        return httpx.Response(200, json={"success": True, "user": user})

    def requests(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.calls if r.method == method.upper() and r.url.path == path]

    def last_json(self, method: str, path: str) -> Any:
        """JSON body of the latest request to method+path."""
        matching = self.requests(method, path)
        assert matching, f"no {method} {path} request was sent"
        return json.loads(matching[-1].content)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def client(backend: FakeBackend) -> AsyncGenerator[AsyncClient, None]:
    """Get test HTTP client whose backend calls go to the fake backend."""

    async def override_get_api_client(
        authorization: Annotated[str | None, Header()] = None,
    ) -> AsyncGenerator[ApiClient, None]:
        token = None
        if authorization and authorization.startswith("Bearer "):
            token = authorization.replace("Bearer ", "", 1)
        api = ApiClient(base_url=BACKEND_URL, token=token, transport=httpx.MockTransport(backend.handler))
        try:
            yield api
        finally:
            await api.aclose()

    app.dependency_overrides[get_api_client] = override_get_api_client

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    """auth_headers("admin") -> Authorization header for that test user."""

    def _headers(role: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {role}"}

    return _headers


@pytest.fixture
async def api_client(backend: FakeBackend) -> AsyncGenerator[ApiClient, None]:
    """ApiClient for service-level tests, bound to the fake backend."""
    api = ApiClient(base_url=BACKEND_URL, token="superadmin", transport=httpx.MockTransport(backend.handler))
    async with api:
        yield api
