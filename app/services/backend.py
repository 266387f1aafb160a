"""Client for the hosted PostgREST-style table API."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import httpx

from ..config import Settings

logger = logging.getLogger(__name__)


class BackendError(RuntimeError):
    """Raised when the table API rejects or fails a request."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


def _filter_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


class BackendClient:
    """Thin wrapper exposing select, update and insert over named tables."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    def _headers(self, *, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": f"{self._settings.app_name} (omnia)",
        }
        api_key = self._settings.backend_api_key
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def select_all(self, table: str) -> list[dict[str, Any]]:
        """Return every row of ``table``."""

        return await self._request("GET", table, params={"select": "*"})

    async def select_eq(
        self, table: str, column: str, value: object
    ) -> list[dict[str, Any]]:
        """Return the rows of ``table`` where ``column`` equals ``value``."""

        return await self._request(
            "GET",
            table,
            params={"select": "*", column: f"eq.{_filter_value(value)}"},
        )

    async def update(
        self,
        table: str,
        values: Mapping[str, Any],
        *,
        key_field: str,
        key: object,
    ) -> list[dict[str, Any]]:
        """Apply a point update to the row whose ``key_field`` equals ``key``."""

        return await self._request(
            "PATCH",
            table,
            params={key_field: f"eq.{_filter_value(key)}"},
            json=dict(values),
            prefer="return=representation",
        )

    async def insert(
        self, table: str, rows: Sequence[Mapping[str, Any]]
    ) -> list[dict[str, Any]]:
        """Insert ``rows`` into ``table`` and return the stored rows."""

        return await self._request(
            "POST",
            table,
            json=[dict(row) for row in rows],
            prefer="return=representation",
        )

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> list[dict[str, Any]]:
        try:
            response = await self._client.request(
                method,
                f"/{table}",
                params=params,
                json=json,
                headers=self._headers(prefer=prefer),
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, table, exc)
            raise BackendError(
                f"Could not reach the catalog backend: {exc.__class__.__name__}"
            ) from exc

        if response.status_code >= 400:
            raise self._error_from_response(response)

        if response.status_code == 204 or not response.content:
            return []

        try:
            payload = response.json()
        except ValueError as exc:
            raise BackendError(
                f"{table} returned an invalid JSON payload",
                status_code=response.status_code,
            ) from exc

        if isinstance(payload, dict):
            payload = [payload]
        if not isinstance(payload, list):
            raise BackendError(
                f"{table} returned an unexpected payload",
                status_code=response.status_code,
            )
        return [row for row in payload if isinstance(row, dict)]

    @staticmethod
    def _error_from_response(response: httpx.Response) -> BackendError:
        message = response.reason_phrase or "Request failed"
        code: str | None = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = str(body.get("message") or body.get("error") or message)
            raw_code = body.get("code")
            code = str(raw_code) if raw_code is not None else None
        elif response.text:
            message = response.text
        return BackendError(message, status_code=response.status_code, code=code)
