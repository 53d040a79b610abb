"""HTTP client for the users backend REST API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from .backend import ResponseAdapter, adapter_for
from .errors import HttpFailure, NetworkFailure, ParseFailure
from .models import DailyAggregateRecord, UserPage

logger = logging.getLogger("userdash.client")


def _normalize_base_url(base_url: str) -> str:
    cleaned = (base_url or "").strip()
    if not cleaned:
        raise ValueError("API base URL must not be empty")
    return cleaned.rstrip("/")


def _extract_error_message(payload: object, default: str) -> str:
    if isinstance(payload, dict):
        for key in ("message", "detail", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return default


class UsersAPIClient:
    """Fetch users and daily records from the backend, and delete users."""

    def __init__(
        self,
        base_url: str,
        *,
        adapter: ResponseAdapter | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = _normalize_base_url(base_url)
        self._adapter = adapter or adapter_for("auto")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "UsersAPIClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, *, params: Optional[Dict[str, str]] = None) -> httpx.Response:
        try:
            response = await self._client.request(method, path, params=params)
        except httpx.RequestError as exc:
            raise NetworkFailure(f"Failed to contact users API at {self._base_url}: {exc}") from exc

        if not response.is_success:
            message = f"Users API {method} {path} failed with status {response.status_code}"
            try:
                parsed = response.json()
            except ValueError:
                parsed = None
            message = _extract_error_message(parsed, message)
            raise HttpFailure(message, status_code=response.status_code, url=str(response.url))
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ParseFailure(f"Users API returned invalid JSON from {response.url}") from exc

    async def list_users(self, search: Optional[str] = None) -> UserPage:
        """Fetch the user list, filtered server-side when ``search`` is not ``None``."""

        params = {"search": search} if search is not None else None
        response = await self._request("GET", "/api/users", params=params)
        page = self._adapter.parse_users(self._json(response))
        logger.debug(
            "Fetched %d user(s) (total %d, %s backend) for search=%r",
            len(page.records),
            page.total,
            page.version.value,
            search,
        )
        return page

    async def get_daily_record(self) -> Optional[DailyAggregateRecord]:
        response = await self._request("GET", "/api/daily-record")
        return self._adapter.parse_daily_record(self._json(response))

    async def delete_user(self, uuid: str) -> None:
        if not uuid:
            raise ValueError("User id must not be empty")
        await self._request("DELETE", f"/api/users/{quote(uuid, safe='')}")
        logger.info("Deleted user %s", uuid)


__all__ = ["UsersAPIClient"]
