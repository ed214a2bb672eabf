"""
Document Processing Models

Wire schemas for the AI processing function and the ``summaries`` table.

The function speaks camelCase JSON (``documentId``, ``summaryId`` ...);
summary rows are snake_case PostgREST rows. Study questions and citations
are stored as JSON columns in the camelCase shape the model produces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from studyaid.enums.learning import Difficulty
from studyaid.enums.processing import ProcessingStatus
from studyaid.models.base import CamelModel, StrictResponse


class ProcessingOptions(CamelModel):
    """Which artefacts the processing function should generate."""

    generate_short_summary: bool = True
    generate_detailed_summary: bool = True
    extract_keywords: bool = True
    generate_questions: bool = True


class ProcessDocumentRequest(CamelModel):
    """Request body of the processing function."""

    document_id: str
    options: ProcessingOptions = Field(default_factory=ProcessingOptions)


class ProcessDocumentResponse(CamelModel):
    """Successful reply of the processing function."""

    summary_id: str
    status: ProcessingStatus
    chunks_processed: Optional[int] = None
    was_chunked: Optional[bool] = None
    was_truncated: Optional[bool] = None
    original_length: Optional[int] = None


class ProcessingErrorBody(CamelModel):
    """Structured failure reply of the processing function."""

    error: str  # User-facing message
    error_code: str
    technical_details: Optional[str] = None


class Citation(CamelModel):
    """
    Grounds an AI claim in the source document.

    ``section`` is the page number for PDFs or the chunk number for text.
    """

    claim: str
    source_quote: str
    verified: bool = False
    section: Optional[int] = None


class StudyQuestion(CamelModel):
    """A generated question/answer pair; becomes a flashcard."""

    question: str
    answer: str
    difficulty: Difficulty = Difficulty.MEDIUM
    source_quote: Optional[str] = None


class ChunkResult(CamelModel):
    """Intermediate result of summarizing one chunk."""

    summary: str = ""
    key_points: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)


class ProcessingResults(CamelModel):
    """Final combined artefacts for a document."""

    short_summary: str = ""
    detailed_summary: str = ""
    bullet_points: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    study_questions: list[StudyQuestion] = Field(default_factory=list)
    citations: list[Citation] = Field(default_factory=list)


class Summary(StrictResponse):
    """A row of the ``summaries`` table."""

    id: str
    document_id: str
    short_summary: Optional[str] = None
    detailed_summary: Optional[str] = None
    bullet_points: Optional[list[str]] = None
    keywords: Optional[list[str]] = None
    study_questions: Optional[list[StudyQuestion]] = None
    citations: Optional[list[Citation]] = None
    compression_ratio: Optional[float] = None
    keyword_coverage: Optional[float] = None  # Citation verification rate (percent)
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
