"""
Document Processing Enums

Status values for summary records and the error codes returned by the
AI processing function.
"""

from enum import Enum


class ProcessingStatus(str, Enum):
    """
    Lifecycle of a summary record.

    pending → processing → completed | failed
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    NOT_STARTED = "not_started"  # No summary row exists yet (client-side only)


class AIErrorCode(str, Enum):
    """
    Error codes returned by the processing function.

    Each code maps to a user-facing message; technical details are
    returned separately for logs.
    """

    AI_BUSY = "AI_BUSY"
    AI_RATE_LIMIT = "AI_RATE_LIMIT"
    AI_INVALID_REQUEST = "AI_INVALID_REQUEST"
    AI_AUTH_ERROR = "AI_AUTH_ERROR"
    AI_SAFETY = "AI_SAFETY"
    AI_EMPTY = "AI_EMPTY"
    AI_NETWORK = "AI_NETWORK"
    AI_ERROR = "AI_ERROR"
    DOC_NOT_FOUND = "DOC_NOT_FOUND"
    EMPTY_DOC = "EMPTY_DOC"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
