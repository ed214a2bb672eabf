"""
Blob Storage Adapter

httpx client for the hosted object store, scoped to one bucket.
"""

import logging
from typing import Any, Optional, Sequence
from urllib.parse import quote

import httpx

from studyaid.clients.base import BackendHTTPClient, TokenGetter
from studyaid.middleware.error_handling import StorageError

logger = logging.getLogger(__name__)


class SupabaseStorageClient(BackendHTTPClient):
    """Upload, signed retrieval URLs and removal for a single bucket."""

    SERVICE_PATH = "/storage/v1"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        bucket: str,
        access_token: Optional[TokenGetter] = None,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(base_url, api_key, access_token=access_token, http=http)
        self.bucket = bucket

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        response = await self.http.post(
            self.url(f"object/{self.bucket}/{quote(path)}"),
            content=data,
            headers=self.headers(**{"Content-Type": content_type, "x-upsert": "false"}),
        )
        self._check(response, "upload", path)
        logger.info(f"Uploaded {len(data)} bytes to {self.bucket}/{path}")
        return path

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        response = await self.http.post(
            self.url(f"object/sign/{self.bucket}/{quote(path)}"),
            json={"expiresIn": expires_in},
            headers=self.headers(),
        )
        self._check(response, "sign", path)
        signed = response.json().get("signedURL") or response.json().get("signedUrl")
        if not signed:
            raise StorageError(f"No signed URL returned for {path}")
        if signed.startswith("http"):
            return signed
        return f"{self.base_url}{self.SERVICE_PATH}/{signed.lstrip('/')}"

    async def remove(self, paths: Sequence[str]) -> None:
        response = await self.http.request(
            "DELETE",
            self.url(f"object/{self.bucket}"),
            json={"prefixes": list(paths)},
            headers=self.headers(),
        )
        self._check(response, "remove", ", ".join(paths))

    def _check(self, response: httpx.Response, action: str, path: str) -> None:
        if response.status_code < 400:
            return
        payload: dict[str, Any] = self.error_payload(response)
        message = payload.get("message") or payload.get("error") or f"Storage {action} failed"
        raise StorageError(
            message,
            status_code=response.status_code,
            details={"action": action, "path": path, "bucket": self.bucket},
        )
