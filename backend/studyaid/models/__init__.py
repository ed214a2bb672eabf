"""
Pydantic models for backend rows and wire payloads.

Modules:
- base: StrictRequest / StrictResponse / CamelModel base classes
- session: Session and SessionUser
- documents: Document rows and payloads
- learning: Flashcards, study sessions, concept mastery, statistics
- processing: AI processing function contract and summary rows
"""

from studyaid.models.base import CamelModel, StrictRequest, StrictResponse
from studyaid.models.session import Session, SessionUser

__all__ = [
    "CamelModel",
    "StrictRequest",
    "StrictResponse",
    "Session",
    "SessionUser",
]
