"""
Edge Functions Adapter

Remote procedure calls into the AI pipeline. Failures come back as a JSON
body ``{error, errorCode, technicalDetails}`` and are raised as
ProcessingError with the same fields.
"""

import logging
from typing import Any

from studyaid.clients.base import BackendHTTPClient
from studyaid.middleware.error_handling import ProcessingError

logger = logging.getLogger(__name__)


class SupabaseFunctionsClient(BackendHTTPClient):
    SERVICE_PATH = "/functions/v1"

    async def invoke(self, name: str, body: dict[str, Any]) -> dict[str, Any]:
        response = await self.http.post(self.url(name), json=body, headers=self.headers())
        if response.status_code < 400:
            return response.json()

        payload = self.error_payload(response)
        message = payload.get("error") or payload.get("message") or f"Function {name} failed"
        logger.error(f"Function {name} returned {response.status_code}: {message}")
        raise ProcessingError(
            message,
            status_code=response.status_code,
            error_code=payload.get("errorCode"),
            details={"technical_details": payload.get("technicalDetails")},
        )
