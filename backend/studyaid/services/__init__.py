"""
Study services for the signed-in user, plus the server-side processing
pipeline.

Modules:
- documents: document library CRUD
- storage: file validation, upload, signed URLs
- ai: processing trigger, summary reads and polling
- learning: SM-2, Weighted Mastery Score, flashcards, mastery tracking
- llm / processing: the AI pipeline behind the processing function
"""

from studyaid.services.ai import AIService
from studyaid.services.documents import DocumentService, estimate_read_time
from studyaid.services.learning import FlashcardService, MasteryService
from studyaid.services.storage import StorageService

__all__ = [
    "AIService",
    "DocumentService",
    "FlashcardService",
    "MasteryService",
    "StorageService",
    "estimate_read_time",
]
