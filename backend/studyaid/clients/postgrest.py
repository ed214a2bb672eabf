"""
PostgREST Data Adapter

httpx client for the hosted database's REST interface. Implements the
DataClient contract: filters become ``column=op.value`` query parameters,
single-row fetches use the object media type so "no rows" comes back as a
PGRST116 error, and error bodies become DataError / NoRowsError.

Usage:
    data = PostgrestClient(url, anon_key, access_token=lambda: session.access_token)
    rows = await data.select(
        "documents",
        filters=[Filter("user_id", "eq", user_id)],
        order=Order("created_at", ascending=False),
    )
"""

import logging
from datetime import date, datetime
from typing import Any, Optional, Sequence

import httpx

from studyaid.clients.base import BackendHTTPClient
from studyaid.clients.protocols import Filter, Order
from studyaid.middleware.error_handling import DataError, NoRowsError, QueryCancelledError
from studyaid.session.cancellation import CancellationToken

logger = logging.getLogger(__name__)

NO_ROWS_CODE = "PGRST116"
OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"


def encode_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def encode_filter(f: Filter) -> tuple[str, str]:
    """Render one Filter as a PostgREST query parameter."""
    if f.op == "in":
        values = ",".join(encode_value(v) for v in f.value)
        return f.column, f"in.({values})"
    return f.column, f"{f.op}.{encode_value(f.value)}"


class PostgrestClient(BackendHTTPClient):
    """Row access over ``/rest/v1/{table}``."""

    SERVICE_PATH = "/rest/v1"

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: Optional[Order] = None,
        limit: Optional[int] = None,
        token: Optional[CancellationToken] = None,
    ) -> list[dict[str, Any]]:
        params = self._params(columns, filters, order, limit)
        response = await self._send("GET", table, token, params=params)
        return response.json()

    async def select_one(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        token: Optional[CancellationToken] = None,
    ) -> dict[str, Any]:
        params = self._params(columns, filters, None, None)
        response = await self._send(
            "GET", table, token, params=params, headers={"Accept": OBJECT_MEDIA_TYPE}
        )
        return response.json()

    async def insert(
        self, table: str, values: dict[str, Any] | list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        response = await self._send(
            "POST",
            table,
            None,
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    async def update(
        self, table: str, values: dict[str, Any], *, filters: Sequence[Filter]
    ) -> list[dict[str, Any]]:
        if not filters:
            raise ValueError("update() requires at least one filter")
        response = await self._send(
            "PATCH",
            table,
            None,
            params=[encode_filter(f) for f in filters],
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    async def delete(self, table: str, *, filters: Sequence[Filter]) -> None:
        if not filters:
            raise ValueError("delete() requires at least one filter")
        await self._send("DELETE", table, None, params=[encode_filter(f) for f in filters])

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _params(
        columns: str,
        filters: Sequence[Filter],
        order: Optional[Order],
        limit: Optional[int],
    ) -> list[tuple[str, str]]:
        params = [("select", columns)]
        params.extend(encode_filter(f) for f in filters)
        if order is not None:
            params.append(("order", f"{order.column}.{'asc' if order.ascending else 'desc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))
        return params

    async def _send(
        self,
        method: str,
        table: str,
        token: Optional[CancellationToken],
        headers: Optional[dict[str, str]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        if token is not None and token.cancelled:
            raise QueryCancelledError(f"{method} {table} cancelled before sending")

        response = await self.http.request(
            method, self.url(table), headers=self.headers(**(headers or {})), **kwargs
        )
        if response.status_code >= 400:
            raise self._to_error(response, table)
        return response

    def _to_error(self, response: httpx.Response, table: str) -> DataError:
        payload = self.error_payload(response)
        code = payload.get("code")
        message = payload.get("message") or f"Request to {table} failed"
        details = {
            "table": table,
            "status": response.status_code,
            "details": payload.get("details"),
            "hint": payload.get("hint"),
        }

        if code == NO_ROWS_CODE:
            return NoRowsError(message, details=details)

        logger.debug(f"PostgREST error on {table}: {response.status_code} {code} {message}")
        return DataError(
            message,
            status_code=response.status_code,
            error_code=code,
            details=details,
        )
