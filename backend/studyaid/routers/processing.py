"""
Document Processing Function

HTTP surface of the AI pipeline, called by clients as a remote procedure.

Endpoints:
- POST /functions/v1/process-document - Summarize a document

Success returns ``{summaryId, status, chunksProcessed, wasChunked,
wasTruncated, originalLength}``. Any failure returns status 500 with
``{error, errorCode, technicalDetails}``: ``error`` is safe to show to
users, ``technicalDetails`` is for logs.

Usage:
    POST /functions/v1/process-document
    {"documentId": "uuid", "options": {"generateQuestions": true}}
"""

import logging
import re

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from studyaid.dependencies import get_document_processor
from studyaid.enums.processing import AIErrorCode
from studyaid.middleware.error_handling import ProcessingError
from studyaid.models.processing import ProcessDocumentRequest, ProcessingErrorBody
from studyaid.services.processing import DocumentProcessor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["processing"])

DEFAULT_ERROR_MESSAGE = (
    "Something went wrong while processing your document. Please try again."
)

# "AI_BUSY:Our AI service is busy..."
CODED_MESSAGE = re.compile(r"^([A-Z][A-Z_]+):(.*)$", re.DOTALL)


def classify_processing_failure(error: Exception) -> ProcessingErrorBody:
    """
    Build the structured error body for a failed run.

    ProcessingErrors already carry a code. Other failures are classified
    by message: ``"CODE:user message"`` is split into its parts, and the
    well-known document failures get their own codes.
    """
    if isinstance(error, ProcessingError):
        return ProcessingErrorBody(
            error=error.message,
            error_code=error.error_code,
            technical_details=error.technical_details or error.message,
        )

    message = str(error)
    code = AIErrorCode.UNKNOWN_ERROR.value
    user_message = DEFAULT_ERROR_MESSAGE

    coded = CODED_MESSAGE.match(message)
    if coded:
        code, user_message = coded.group(1), coded.group(2).strip()
    elif "Document not found" in message:
        code = AIErrorCode.DOC_NOT_FOUND.value
        user_message = "The document could not be found. It may have been deleted."
    elif "no text content" in message.lower():
        code = AIErrorCode.EMPTY_DOC.value
        user_message = (
            "The document appears to be empty or could not be read. "
            "Please try uploading again."
        )

    return ProcessingErrorBody(error=user_message, error_code=code, technical_details=message)


@router.post("/process-document")
async def process_document(
    request: ProcessDocumentRequest,
    processor: DocumentProcessor = Depends(get_document_processor),
):
    """Run the summarization pipeline for one document."""
    try:
        response = await processor.process(request.document_id, request.options)
    except Exception as e:
        body = classify_processing_failure(e)
        logger.error(
            f"Processing {request.document_id} failed [{body.error_code}]: "
            f"{body.technical_details}"
        )
        return JSONResponse(status_code=500, content=body.to_wire())

    return response.to_wire()
