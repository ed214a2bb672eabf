"""
Error Classification

Decides what a failed data operation means for the retry policy:

    AUTH       credential rejected  → force refresh, retry once
    TIMEOUT    internal deadline    → warm up connection, retry once
    CANCELLED  caller cancelled     → propagate immediately
    DATA       anything else        → surface as-is

Auth detection is a capability check ("does this failure mean my credential
is invalid?"). Structured signals are checked first (HTTP status, provider
error code); message substring matching is the fallback for collaborators
that only report text. All three signature lists come from
config/default.yaml (``auth_errors``) so they can be tuned per provider.

Usage:
    from studyaid.session.classifier import classify_error, is_auth_error

    if is_auth_error(exc):
        await coordinator.refresh_session()
"""

import asyncio
import logging
from typing import Any, Iterable, Optional

from studyaid.config import yaml_config
from studyaid.enums.session import ErrorKind
from studyaid.middleware.error_handling import (
    AuthenticationError,
    QueryCancelledError,
    QueryTimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_AUTH_PATTERNS: tuple[str, ...] = (
    "jwt expired",
    "token expired",
    "invalid jwt",
    "not authenticated",
    "unauthorized",
    "forbidden",
    "401",
    "403",
    "invalid claim",
    "session expired",
    "refresh_token_not_found",
)
DEFAULT_AUTH_STATUS_CODES: tuple[int, ...] = (401, 403)
DEFAULT_AUTH_ERROR_CODES: tuple[str, ...] = (
    "PGRST301",
    "PGRST302",
    "bad_jwt",
    "session_expired",
    "session_not_found",
    "refresh_token_not_found",
    "refresh_token_already_used",
)


class AuthErrorClassifier:
    """
    Configurable matcher for authentication-class failures.

    Attributes:
        patterns: Lower-cased substrings searched in the error message
        status_codes: HTTP statuses that always mean "credential rejected"
        error_codes: Provider error codes that mean "credential rejected"
    """

    def __init__(
        self,
        patterns: Optional[Iterable[str]] = None,
        status_codes: Optional[Iterable[int]] = None,
        error_codes: Optional[Iterable[str]] = None,
    ) -> None:
        self.patterns = tuple(
            p.lower() for p in (patterns if patterns is not None else DEFAULT_AUTH_PATTERNS)
        )
        self.status_codes = frozenset(
            status_codes if status_codes is not None else DEFAULT_AUTH_STATUS_CODES
        )
        self.error_codes = frozenset(
            error_codes if error_codes is not None else DEFAULT_AUTH_ERROR_CODES
        )

    @classmethod
    def from_config(cls, config: Optional[dict[str, Any]] = None) -> "AuthErrorClassifier":
        """Build a classifier from the ``auth_errors`` section of the YAML config."""
        section = (config if config is not None else yaml_config).get("auth_errors") or {}
        return cls(
            patterns=section.get("patterns"),
            status_codes=section.get("status_codes"),
            error_codes=section.get("error_codes"),
        )

    def is_auth_error(self, error: Any) -> bool:
        """
        Check whether a failure means the credential is no longer valid.

        Args:
            error: An exception, an error-like object, a message string or None

        Returns:
            True for authentication-class failures
        """
        if error is None:
            return False
        if isinstance(error, AuthenticationError):
            return True
        # Cancellation and deadline failures can carry arbitrary text
        if isinstance(error, (QueryCancelledError, QueryTimeoutError, asyncio.CancelledError)):
            return False

        status = getattr(error, "status_code", None)
        if status in self.status_codes:
            return True

        code = getattr(error, "error_code", None) or getattr(error, "code", None)
        if code is not None and str(code) in self.error_codes:
            return True

        message = getattr(error, "message", None) or str(error)
        lowered = message.lower()
        return any(pattern in lowered for pattern in self.patterns)

    def classify(self, error: BaseException) -> ErrorKind:
        """Map an exception onto the retry taxonomy."""
        if isinstance(error, (QueryCancelledError, asyncio.CancelledError)):
            return ErrorKind.CANCELLED
        if isinstance(error, (QueryTimeoutError, asyncio.TimeoutError)):
            return ErrorKind.TIMEOUT
        if self.is_auth_error(error):
            return ErrorKind.AUTH
        return ErrorKind.DATA


default_classifier = AuthErrorClassifier.from_config()


def is_auth_error(error: Any) -> bool:
    """Check a failure against the configured auth signatures."""
    return default_classifier.is_auth_error(error)


def classify_error(error: BaseException) -> ErrorKind:
    """Classify a failure with the configured auth signatures."""
    return default_classifier.classify(error)
