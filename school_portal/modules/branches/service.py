"""Service for Branches module."""

from typing import Any

from school_portal.core.api_client import ApiClient
from school_portal.shared.utils.text import format_branch_name


def with_formatted_name(branch: dict[str, Any]) -> dict[str, Any]:
    """Add the company/location split used by branch pickers and cards."""
    return {**branch, "formatted_name": format_branch_name(branch.get("branch_name"))}


class BranchService:
    def __init__(self, api: ApiClient):
        self.api = api

    async def list_branches(self) -> list[dict[str, Any]]:
        body = await self.api.get("/branches", {"limit": 100})
        return [with_formatted_name(b) for b in body.get("data") or []]
