"""
Middleware and exception hierarchy.

Usage:
    from studyaid.middleware import setup_error_handling, ServiceError
"""

from studyaid.middleware.error_handling import (
    AuthenticationError,
    DataError,
    ErrorHandlingMiddleware,
    NoRowsError,
    NotFoundError,
    ProcessingError,
    QueryCancelledError,
    QueryTimeoutError,
    ServiceError,
    StorageError,
    ValidationError,
    setup_error_handling,
)

__all__ = [
    "AuthenticationError",
    "DataError",
    "ErrorHandlingMiddleware",
    "NoRowsError",
    "NotFoundError",
    "ProcessingError",
    "QueryCancelledError",
    "QueryTimeoutError",
    "ServiceError",
    "StorageError",
    "ValidationError",
    "setup_error_handling",
]
