"""
Integration Test Fixtures

Provides a fake hosted backend behind httpx.MockTransport and a fully wired
StudyAidClient pointed at it. Requests go through the real adapters, the
session coordinator and the resilient executor; only the network is fake.

The backend understands just enough of the auth, REST and functions APIs
for the flows under test:
    - /auth/v1/token (password and refresh_token grants), /auth/v1/logout
    - /rest/v1/{table} with eq filters, order, limit and single-object reads
    - /functions/v1/* forwarded to the FastAPI app via ASGITransport
"""

import asyncio
import itertools
import json
from typing import AsyncGenerator, Optional

import httpx
import pytest
import pytest_asyncio

from studyaid.client import StudyAidClient
from studyaid.clients.postgrest import OBJECT_MEDIA_TYPE, encode_value
from studyaid.config import Settings
from tests.conftest import FakeDataClient

SUPABASE_URL = "http://backend.test"
USER = {"id": "user-1234-5678", "email": "ada@example.com"}


class FakeBackend:
    """
    Scriptable stand-in for the hosted backend.

    Attributes:
        data: Table storage shared with service-role code under test
        rejected_tokens: Access tokens the REST API answers with 401
        refresh_fails: Reject refresh_token grants
        stall_next: Number of upcoming REST requests that hang
        functions_app: ASGI app serving /functions/v1 (optional)
    """

    def __init__(self) -> None:
        self.data = FakeDataClient()
        self.requests: list[httpx.Request] = []
        self.rejected_tokens: set[str] = set()
        self.refresh_fails = False
        self.stall_next = 0
        self.functions_app = None
        self._issued = itertools.count(1)

    def rest_requests(self, table: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == f"/rest/v1/{table}"]

    def token_requests(self, grant_type: str) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.url.path == "/auth/v1/token" and r.url.params.get("grant_type") == grant_type
        ]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/auth/v1/token":
            return self._token(request)
        if path == "/auth/v1/logout":
            return httpx.Response(204)
        if path.startswith("/rest/v1/"):
            return await self._rest(request, path.removeprefix("/rest/v1/"))
        if path.startswith("/functions/v1/") and self.functions_app is not None:
            transport = httpx.ASGITransport(app=self.functions_app)
            return await transport.handle_async_request(request)
        return httpx.Response(404, json={"message": f"No route for {path}"})

    # =========================================================================
    # Auth
    # =========================================================================

    def _token(self, request: httpx.Request) -> httpx.Response:
        if request.url.params.get("grant_type") == "refresh_token" and self.refresh_fails:
            return httpx.Response(
                400,
                json={"error": "invalid_grant", "error_description": "Invalid Refresh Token"},
            )

        n = next(self._issued)
        return httpx.Response(
            200,
            json={
                "access_token": f"jwt-{n}",
                "refresh_token": f"rt-{n}",
                "expires_in": 3600,
                "token_type": "bearer",
                "user": USER,
            },
        )

    # =========================================================================
    # REST
    # =========================================================================

    async def _rest(self, request: httpx.Request, table: str) -> httpx.Response:
        token = request.headers.get("authorization", "").removeprefix("Bearer ")
        if token in self.rejected_tokens:
            return httpx.Response(401, json={"code": "PGRST301", "message": "JWT expired"})

        if self.stall_next > 0:
            self.stall_next -= 1
            await asyncio.sleep(30)

        params = request.url.params
        filters = [
            (column, raw.removeprefix("eq."))
            for column, raw in params.multi_items()
            if column not in ("select", "order", "limit") and raw.startswith("eq.")
        ]
        matched = [
            row
            for row in self.data.rows(table)
            if all(encode_value(row.get(column)) == value for column, value in filters)
        ]

        if request.method == "GET":
            return self._get(request, matched)
        if request.method == "POST":
            rows = await self.data.insert(table, json.loads(request.content))
            return httpx.Response(201, json=rows)
        if request.method == "PATCH":
            changes = json.loads(request.content)
            for row in matched:
                row.update(changes)
            return httpx.Response(200, json=matched)
        if request.method == "DELETE":
            self.data.tables[table] = [r for r in self.data.rows(table) if r not in matched]
            return httpx.Response(204)
        return httpx.Response(405)

    @staticmethod
    def _get(request: httpx.Request, rows: list[dict]) -> httpx.Response:
        order: Optional[str] = request.url.params.get("order")
        if order:
            column, direction = order.rsplit(".", 1)
            rows = sorted(rows, key=lambda r: str(r.get(column)), reverse=direction == "desc")
        limit = request.url.params.get("limit")
        if limit:
            rows = rows[: int(limit)]

        if OBJECT_MEDIA_TYPE in request.headers.get("accept", ""):
            if len(rows) != 1:
                return httpx.Response(
                    406,
                    json={
                        "code": "PGRST116",
                        "message": "JSON object requested, multiple (or no) rows returned",
                    },
                )
            return httpx.Response(200, json=rows[0])
        return httpx.Response(200, json=rows)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        SUPABASE_URL=SUPABASE_URL,
        SUPABASE_ANON_KEY="anon-key",
        QUERY_ATTEMPT_TIMEOUT=0.3,
    )


@pytest_asyncio.fixture
async def client(backend, settings) -> AsyncGenerator[StudyAidClient, None]:
    """StudyAidClient wired to the fake backend."""
    http = httpx.AsyncClient(transport=httpx.MockTransport(backend.handle))
    app_client = StudyAidClient(settings, http=http)
    yield app_client
    await app_client.aclose()


@pytest_asyncio.fixture
async def signed_in_client(client) -> StudyAidClient:
    await client.auth.sign_in_with_password(USER["email"], "secret")
    return client
