from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Header

from school_portal.core.api_client.client import ApiClient


def _bearer_token(authorization: str | None) -> str | None:
    if authorization and authorization.startswith("Bearer "):
        return authorization.replace("Bearer ", "", 1)
    return None


async def get_api_client(
    authorization: Annotated[str | None, Header()] = None,
) -> AsyncGenerator[ApiClient, None]:
    """Backend client acting with the caller's bearer token."""
    client = ApiClient(token=_bearer_token(authorization))
    try:
        yield client
    finally:
        await client.aclose()


__all__ = ["ApiClient", "get_api_client"]
