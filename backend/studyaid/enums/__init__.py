"""
Centralized enum definitions for the application.

All enums are organized by domain:
- session.py: Auth events, cancellation reasons, error kinds
- learning.py: Difficulty, study session types, document filters
- processing.py: Summary processing status and AI error codes

Usage:
    from studyaid.enums import AuthEvent, Difficulty, ProcessingStatus

    # Or import from specific module
    from studyaid.enums.session import CancelReason
"""

from studyaid.enums.session import (
    AuthEvent,
    CancelReason,
    ErrorKind,
)
from studyaid.enums.learning import (
    Difficulty,
    DocumentFilter,
    MasteryLevel,
    StudySessionType,
)
from studyaid.enums.processing import (
    AIErrorCode,
    ProcessingStatus,
)

__all__ = [
    # Session
    "AuthEvent",
    "CancelReason",
    "ErrorKind",
    # Learning
    "Difficulty",
    "DocumentFilter",
    "MasteryLevel",
    "StudySessionType",
    # Processing
    "AIErrorCode",
    "ProcessingStatus",
]
