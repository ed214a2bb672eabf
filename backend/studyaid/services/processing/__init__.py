"""Server-side document processing: chunking, LLM summarization, citations."""

from studyaid.services.processing.chunking import split_into_chunks
from studyaid.services.processing.citations import (
    citation_rate,
    compression_ratio,
    verify_citation,
)
from studyaid.services.processing.processor import DocumentProcessor

__all__ = [
    "DocumentProcessor",
    "citation_rate",
    "compression_ratio",
    "split_into_chunks",
    "verify_citation",
]
