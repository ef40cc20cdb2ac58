"""HTTP client for the directory listing API."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from staff_directory.models.directory import ClientConfig, ListingResponse

logger = logging.getLogger(__name__)


class DirectoryApiError(Exception):
    pass


class LoginRequiredError(DirectoryApiError):
    pass


class DirectoryApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        lock: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.lock = lock
        self._client = client or httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise DirectoryApiError(f"Request to {path} failed: {e}") from e

        if response.status_code == httpx.codes.UNAUTHORIZED:
            try:
                detail = response.json().get("detail", "Login required")
            except ValueError:
                detail = "Login required"
            raise LoginRequiredError(detail)
        if response.is_error:
            raise DirectoryApiError(f"{path} answered {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise DirectoryApiError(f"{path} answered with a non-JSON body") from e

    async def list_employees(self, params: dict[str, Any]) -> ListingResponse:
        query = {k: v for k, v in params.items() if v not in (None, "", [])}
        if self.lock:
            query["lock"] = self.lock
        data = await self._get("/api/v1/directory/employees", query)
        try:
            return ListingResponse.model_validate(data)
        except ValidationError as e:
            raise DirectoryApiError("Unexpected listing payload") from e

    async def departments(self) -> list[str]:
        return list(await self._get("/api/v1/directory/departments"))

    async def config(self) -> ClientConfig:
        data = await self._get("/api/v1/directory/config")
        try:
            return ClientConfig.model_validate(data)
        except ValidationError as e:
            raise DirectoryApiError("Unexpected config payload") from e
