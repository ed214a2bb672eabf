"""
AI Service

Client side of the document processing function: triggers processing,
reads summaries, and polls until processing finishes.

Usage:
    service = AIService(data, functions, executor)

    response = await service.process_document(document_id)
    summary = await service.wait_for_summary(document_id)
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from studyaid.clients.protocols import DataClient, Filter, FunctionsClient
from studyaid.config import settings
from studyaid.enums.processing import AIErrorCode, ProcessingStatus
from studyaid.middleware.error_handling import (
    NoRowsError,
    ProcessingError,
    QueryTimeoutError,
    ServiceError,
)
from studyaid.models.processing import (
    ProcessDocumentRequest,
    ProcessDocumentResponse,
    ProcessingOptions,
    Summary,
)
from studyaid.services.base import BackendService
from studyaid.session.cancellation import CancellationToken
from studyaid.session.executor import ResilientQueryExecutor

logger = logging.getLogger(__name__)

PROCESS_FUNCTION = "process-document"
SERVICE_UNAVAILABLE_MESSAGE = (
    "Our AI service is temporarily unavailable. Please wait a moment and try again."
)


class AIService(BackendService):
    def __init__(
        self,
        data: DataClient,
        functions: FunctionsClient,
        executor: ResilientQueryExecutor,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        super().__init__(data, executor)
        self.functions = functions
        self._sleep = sleep

    async def process_document(
        self,
        document_id: str,
        options: Optional[ProcessingOptions] = None,
    ) -> ProcessDocumentResponse:
        """
        Run the processing function for a document.

        The session is validated with the long buffer first: processing can
        take a while and a token expiring mid-call fails the whole run.

        Raises:
            AuthenticationError: No usable session
            ProcessingError: The function reported a failure (message is
                user-facing, technical details are kept for logs)
        """
        request = ProcessDocumentRequest(
            document_id=document_id, options=options or ProcessingOptions()
        )

        try:
            data = await self.write(
                lambda: self.functions.invoke(PROCESS_FUNCTION, request.to_wire()),
                name="process_document",
                critical=True,
            )
        except ServiceError:
            raise
        except Exception as e:
            logger.error(f"Processing function call failed: {type(e).__name__}: {e}")
            raise ProcessingError(
                SERVICE_UNAVAILABLE_MESSAGE,
                error_code=AIErrorCode.AI_NETWORK.value,
                details={"technical_details": str(e)},
            ) from e

        # The function may report failure in a 200 body
        if data.get("error"):
            logger.error(f"Processing error: {data.get('technicalDetails') or data['error']}")
            raise ProcessingError(
                data["error"],
                error_code=data.get("errorCode"),
                details={"technical_details": data.get("technicalDetails")},
            )

        return ProcessDocumentResponse.model_validate(data)

    async def get_summary(
        self, document_id: str, signal: Optional[CancellationToken] = None
    ) -> Optional[Summary]:
        """The document's summary row, or None if processing never started."""

        async def fetch(token) -> dict[str, Any]:
            return await self.data.select_one(
                "summaries", filters=[Filter("document_id", "eq", document_id)], token=token
            )

        try:
            row = await self.read(fetch, name="get_summary", signal=signal)
        except NoRowsError:
            logger.debug(f"No summary for document {document_id}")
            return None
        return Summary.model_validate(row)

    async def wait_for_summary(
        self,
        document_id: str,
        max_attempts: int = settings.SUMMARY_POLL_ATTEMPTS,
        interval: float = settings.SUMMARY_POLL_INTERVAL_SECONDS,
    ) -> Summary:
        """
        Poll until the summary is completed.

        Raises:
            ProcessingError: Processing failed
            QueryTimeoutError: Still not done after ``max_attempts`` polls
        """
        for _ in range(max_attempts):
            summary = await self.get_summary(document_id)
            if summary is not None:
                if summary.processing_status == ProcessingStatus.COMPLETED:
                    return summary
                if summary.processing_status == ProcessingStatus.FAILED:
                    raise ProcessingError(summary.error_message or "AI processing failed")
            await self._sleep(interval)

        raise QueryTimeoutError(
            "Timeout waiting for AI processing",
            details={"document_id": document_id, "attempts": max_attempts},
        )

    async def get_processing_status(
        self, document_id: str
    ) -> tuple[ProcessingStatus, Optional[Summary]]:
        summary = await self.get_summary(document_id)
        if summary is None:
            return ProcessingStatus.NOT_STARTED, None
        return summary.processing_status, summary
