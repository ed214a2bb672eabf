"""
Error Handling

Exception hierarchy shared by the session layer, the study services and the
processing function, plus the middleware that renders those exceptions as
consistent JSON responses.

Error taxonomy for wrapped data operations:
    AuthenticationError  - credential rejected; refresh + one retry
    QueryTimeoutError    - internal deadline exceeded; warm-up + one retry
    QueryCancelledError  - caller cancelled; propagated immediately
    DataError            - any other collaborator failure; surfaced as-is

Usage:
    from studyaid.middleware.error_handling import ServiceError, setup_error_handling

    # Add middleware to app
    setup_error_handling(app, debug=settings.DEBUG)

    # Raise custom exceptions
    raise DataError("Row level security violation", error_code="42501")
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# =============================================================================
# Custom Exceptions
# =============================================================================


class ServiceError(Exception):
    """
    Base exception for service errors.

    Provides consistent error handling with:
    - HTTP status code
    - Error code for categorization
    - Optional details for debugging

    Example:
        raise ServiceError("Backend unreachable", status_code=503)
    """

    status_code: int = 500
    error_code: str = "service_error"

    def __init__(
        self,
        message: str,
        status_code: int = None,
        error_code: str = None,
        details: dict = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details


class AuthenticationError(ServiceError):
    """
    Authentication error.

    Raised when no usable session exists, or when the backend keeps
    rejecting the credential after a forced refresh.
    """

    status_code = 401
    error_code = "auth_error"


class QueryTimeoutError(ServiceError):
    """
    Internal deadline exceeded.

    Raised when a query attempt outlives its per-attempt timeout. Usually a
    symptom of a stale connection after idling.
    """

    status_code = 504
    error_code = "query_timeout"


class QueryCancelledError(ServiceError):
    """
    Externally requested cancellation.

    Never retried and never triggers a refresh or warm-up.
    """

    status_code = 499
    error_code = "query_cancelled"


class DataError(ServiceError):
    """
    Collaborator-reported failure.

    ``error_code`` carries the collaborator's own code when it sends one
    (e.g. PostgREST "PGRST116" or a Postgres SQLSTATE).
    """

    status_code = 502
    error_code = "data_error"


class NoRowsError(DataError):
    """
    "No data found" response to a single-row fetch.

    Callers usually translate this into ``None``.
    """

    status_code = 404
    error_code = "PGRST116"


class StorageError(DataError):
    """Blob storage failure (upload, signing, removal)."""

    error_code = "storage_error"


class ProcessingError(ServiceError):
    """
    AI processing failure.

    ``message`` is safe to show to users; ``details["technical_details"]``
    carries the raw failure for logs.
    """

    status_code = 500
    error_code = "UNKNOWN_ERROR"

    @property
    def technical_details(self) -> Optional[str]:
        if self.details:
            return self.details.get("technical_details")
        return None


class ValidationError(ServiceError):
    """
    Data validation error.

    Raised when input data fails validation.
    """

    status_code = 422
    error_code = "validation_error"


class NotFoundError(ServiceError):
    """
    Resource not found error.

    Raised when a requested resource doesn't exist.
    """

    status_code = 404
    error_code = "not_found"


# =============================================================================
# Error Handling Middleware
# =============================================================================


def error_body(error_id: str, error_code: str, message: str, details: Optional[dict]) -> dict:
    """JSON body for failures that escape a route (dependencies, startup wiring)."""
    body = {
        "error": error_code,
        "message": message,
        "error_id": error_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        body["details"] = details
    return body


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Renders exceptions that escape the routers as JSON.

    The processing route reports its own failures in the function error
    format; this catches what happens around it, e.g. a dependency that
    cannot be built. ServiceErrors keep their status and code; anything
    else becomes a 500. Details and tracebacks are only included in debug.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        error_id = str(uuid4())[:8]

        try:
            return await call_next(request)
        except HTTPException:
            raise
        except ServiceError as e:
            logger.error(f"[{error_id}] {request.method} {request.url.path} {e.error_code}: {e.message}")
            return JSONResponse(
                status_code=e.status_code,
                content=error_body(
                    error_id, e.error_code, e.message, e.details if self.debug else None
                ),
            )
        except Exception as e:
            logger.error(
                f"[{error_id}] {request.method} {request.url.path} "
                f"unhandled {type(e).__name__}: {e}\n{traceback.format_exc()}"
            )
            details = None
            if self.debug:
                details = {"exception": type(e).__name__, "message": str(e)}
            return JSONResponse(
                status_code=500,
                content=error_body(
                    error_id, "internal_server_error", "An unexpected error occurred", details
                ),
            )


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """Install ErrorHandlingMiddleware on the app."""
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling middleware enabled (debug={debug})")
