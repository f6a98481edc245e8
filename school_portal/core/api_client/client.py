"""Single request helper for the school REST backend."""

import logging
from typing import Any

import httpx

from school_portal.core.config import settings
from school_portal.core.exceptions import UpstreamError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

JSONDict = dict[str, Any]


def _clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    """Drop unset filters: the backend treats an empty value as a filter."""
    if not params:
        return None
    return {k: v for k, v in params.items() if v is not None and v != ""}


class ApiClient:
    """
    Thin wrapper over httpx.AsyncClient bound to one caller's bearer token.

    Every call returns the parsed JSON envelope
    ({success, data, pagination, message, errors, ...}) or raises:
    UpstreamError for non-2xx answers, UpstreamUnavailableError when the
    backend cannot be reached or does not answer with JSON.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.token = token
        self.timeout = timeout if timeout is not None else settings.api_timeout_seconds
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @staticmethod
    def _url(endpoint: str) -> str:
        return endpoint if endpoint.startswith("/") else f"/{endpoint}"

    async def _send(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        files: Any = None,
        data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            return await self._client.request(
                method,
                self._url(endpoint),
                params=_clean_params(params),
                json=json,
                files=files,
                data=data,
            )
        except httpx.TimeoutException as exc:
            logger.error("API request timed out: %s %s", method, endpoint)
            raise UpstreamUnavailableError("Backend request timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("API request error: %s %s: %s", method, endpoint, exc)
            raise UpstreamUnavailableError() from exc

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        files: Any = None,
        data: dict[str, Any] | None = None,
    ) -> JSONDict:
        response = await self._send(method, endpoint, params=params, json=json, files=files, data=data)
        try:
            body = response.json()
        except ValueError as exc:
            if response.is_success:
                logger.error("API returned non-JSON body: %s %s", method, endpoint)
                raise UpstreamUnavailableError("Backend returned an invalid response") from exc
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if not response.is_success:
            message = body.get("message") or "An error occurred"
            logger.warning(
                "API request failed: %s %s -> %s %s", method, endpoint, response.status_code, message
            )
            raise UpstreamError(
                message=message,
                status_code=response.status_code,
                errors=body.get("errors") if isinstance(body.get("errors"), list) else None,
            )
        return body

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> JSONDict:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, json: Any = None) -> JSONDict:
        return await self.request("POST", endpoint, json=json)

    async def put(self, endpoint: str, json: Any = None) -> JSONDict:
        return await self.request("PUT", endpoint, json=json)

    async def delete(self, endpoint: str) -> JSONDict:
        return await self.request("DELETE", endpoint)

    async def post_multipart(
        self, endpoint: str, files: dict[str, Any], data: dict[str, Any] | None = None
    ) -> JSONDict:
        return await self.request("POST", endpoint, files=files, data=data)

    async def get_bytes(self, endpoint: str) -> tuple[bytes, str]:
        """Binary download (e.g. invoice PDF). Returns (content, content_type)."""
        response = await self._send("GET", endpoint)
        if not response.is_success:
            message = response.text or "Failed to download"
            try:
                body = response.json()
                if isinstance(body, dict) and body.get("message"):
                    message = body["message"]
            except ValueError:
                pass
            logger.warning("API download failed: GET %s -> %s", endpoint, response.status_code)
            raise UpstreamError(message=message, status_code=response.status_code)
        content_type = response.headers.get("content-type", "application/octet-stream")
        return response.content, content_type

    async def get_all(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[Any]:
        """Walk ?page=N until pagination.total records are collected."""
        limit = limit or settings.backend_page_limit
        collected: list[Any] = []
        page = 1
        while True:
            body = await self.get(endpoint, {**(params or {}), "limit": limit, "page": page})
            rows = body.get("data") or []
            collected.extend(rows)
            total = (body.get("pagination") or {}).get("total")
            if not rows or len(rows) < limit:
                break
            if total is not None and len(collected) >= int(total):
                break
            page += 1
        return collected
