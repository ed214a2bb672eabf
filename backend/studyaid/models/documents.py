"""
Document Models

Rows of the ``documents`` table and the payloads used to create and update
them, plus the result of a blob upload.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from studyaid.models.base import StrictRequest, StrictResponse


class Document(StrictResponse):
    """A user document. ``original_text`` is omitted from list queries."""

    id: str
    user_id: str
    title: str
    type: Optional[str] = None
    storage_path: Optional[str] = None
    original_text: Optional[str] = None
    is_starred: bool = False
    is_draft: bool = True
    read_time_minutes: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def read_time_label(self) -> str:
        """Human-readable read time for list views."""
        if self.read_time_minutes:
            return f"{self.read_time_minutes} min read"
        return "Quick read"


class DocumentCreate(StrictRequest):
    """Payload to create a document. ``user_id`` is filled in by the service."""

    title: str
    type: Optional[str] = None
    storage_path: Optional[str] = None
    original_text: Optional[str] = None
    read_time_minutes: Optional[int] = None
    is_draft: bool = True


class DocumentUpdate(StrictRequest):
    """Partial update of a document; unset fields are left untouched."""

    title: Optional[str] = None
    type: Optional[str] = None
    storage_path: Optional[str] = None
    original_text: Optional[str] = None
    read_time_minutes: Optional[int] = None
    is_starred: Optional[bool] = None
    is_draft: Optional[bool] = None


class UploadResult(StrictResponse):
    """Where an uploaded file landed and a signed URL to read it back."""

    path: str
    url: str
