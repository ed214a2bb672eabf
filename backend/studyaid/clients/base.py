"""
Shared httpx plumbing for the hosted-backend adapters.

Every adapter talks to the same project URL with the same API key, and
authorizes requests with the current session's access token when one is
available (falling back to the API key itself, which is how service-role
callers authenticate).
"""

import logging
from typing import Any, Callable, Optional

import httpx

logger = logging.getLogger(__name__)

TokenGetter = Callable[[], Optional[str]]


class BackendHTTPClient:
    """
    Base class for the auth, data, storage and functions adapters.

    Args:
        base_url: Project URL, e.g. "https://xyz.supabase.co"
        api_key: Project API key (anon or service role)
        access_token: Callable returning the bearer token to send, if any
        http: Optional pre-built AsyncClient (tests pass one with a MockTransport)
        timeout: Request timeout in seconds when building the client here
    """

    SERVICE_PATH: str = ""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[TokenGetter] = None,
        http: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._access_token = access_token
        self.http = http or httpx.AsyncClient(timeout=timeout)

    def url(self, path: str) -> str:
        return f"{self.base_url}{self.SERVICE_PATH}/{path.lstrip('/')}"

    def headers(self, **extra: str) -> dict[str, str]:
        token = self._access_token() if self._access_token else None
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.api_key}",
        }
        headers.update(extra)
        return headers

    async def aclose(self) -> None:
        await self.http.aclose()

    @staticmethod
    def error_payload(response: httpx.Response) -> dict[str, Any]:
        """Best-effort JSON error body; falls back to the raw text."""
        try:
            payload = response.json()
        except ValueError:
            return {"message": response.text or response.reason_phrase}
        if isinstance(payload, dict):
            return payload
        return {"message": str(payload)}
