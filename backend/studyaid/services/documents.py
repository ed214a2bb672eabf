"""
Document Service

CRUD over the ``documents`` table for the signed-in user, with the library
filters used by list views.

Usage:
    service = DocumentService(data, executor)

    docs = await service.list_documents(DocumentFilter.RECENT)
    doc = await service.create_document(DocumentCreate(title="Notes", original_text=text))
    await service.toggle_star(doc.id, True)
"""

import logging
import math
from datetime import timedelta
from typing import Any, Optional

from studyaid.clients.protocols import Filter, Order
from studyaid.enums.learning import DocumentFilter
from studyaid.middleware.error_handling import NoRowsError, NotFoundError
from studyaid.models.documents import Document, DocumentCreate, DocumentUpdate
from studyaid.services.base import BackendService
from studyaid.session.cancellation import CancellationToken

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200
RECENT_DAYS = 7

# List views never need the (potentially large) document text
LIST_COLUMNS = (
    "id, title, type, storage_path, created_at, updated_at, "
    "is_starred, is_draft, read_time_minutes, user_id"
)


def estimate_read_time(text: str) -> int:
    """Minutes to read ``text`` at 200 words per minute, at least 1."""
    words = len(text.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


class DocumentService(BackendService):
    async def list_documents(
        self,
        filter: DocumentFilter = DocumentFilter.ALL,
        signal: Optional[CancellationToken] = None,
    ) -> list[Document]:
        """
        List the user's documents, newest first.

        Args:
            filter: all, starred, drafts or recent (created in the last 7 days)
            signal: Optional caller cancellation token
        """
        filter = DocumentFilter(filter)
        filters: list[Filter] = []
        if filter == DocumentFilter.STARRED:
            filters.append(Filter("is_starred", "eq", True))
        elif filter == DocumentFilter.DRAFTS:
            filters.append(Filter("is_draft", "eq", True))
        elif filter == DocumentFilter.RECENT:
            filters.append(Filter("created_at", "gte", self.clock() - timedelta(days=RECENT_DAYS)))

        async def fetch(token) -> list[dict[str, Any]]:
            return await self.data.select(
                "documents",
                columns=LIST_COLUMNS,
                filters=filters,
                order=Order("created_at", ascending=False),
                token=token,
            )

        rows = await self.read(fetch, name="list_documents", signal=signal)
        return [Document.model_validate(row) for row in rows]

    async def get_document(
        self, document_id: str, signal: Optional[CancellationToken] = None
    ) -> Optional[Document]:
        """Fetch one document; None when it does not exist."""

        async def fetch(token) -> dict[str, Any]:
            return await self.data.select_one(
                "documents", filters=[Filter("id", "eq", document_id)], token=token
            )

        try:
            row = await self.read(fetch, name="get_document", signal=signal)
        except NoRowsError:
            logger.info(f"Document {document_id} not found")
            return None
        return Document.model_validate(row)

    async def create_document(self, document: DocumentCreate) -> Document:
        user_id = await self.user_id()
        values = document.model_dump(mode="json", exclude_none=True)
        values["user_id"] = user_id
        if document.original_text and document.read_time_minutes is None:
            values["read_time_minutes"] = estimate_read_time(document.original_text)

        rows = await self.write(
            lambda: self.data.insert("documents", values), name="create_document"
        )
        logger.info(f"Created document {rows[0].get('id')}")
        return Document.model_validate(rows[0])

    async def update_document(self, document_id: str, updates: DocumentUpdate) -> Document:
        """
        Apply a partial update.

        Raises:
            NotFoundError: If no document matched
        """
        values = updates.model_dump(mode="json", exclude_unset=True)
        rows = await self.write(
            lambda: self.data.update(
                "documents", values, filters=[Filter("id", "eq", document_id)]
            ),
            name="update_document",
        )
        if not rows:
            raise NotFoundError("Document not found", details={"document_id": document_id})
        return Document.model_validate(rows[0])

    async def delete_document(self, document_id: str) -> None:
        await self.write(
            lambda: self.data.delete("documents", filters=[Filter("id", "eq", document_id)]),
            name="delete_document",
        )

    async def toggle_star(self, document_id: str, is_starred: bool) -> Document:
        return await self.update_document(document_id, DocumentUpdate(is_starred=is_starred))
