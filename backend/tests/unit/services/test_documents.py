"""
Unit tests for DocumentService.
"""

from datetime import timedelta

import pytest

from studyaid.enums.learning import DocumentFilter
from studyaid.middleware.error_handling import NotFoundError
from studyaid.models.documents import DocumentCreate, DocumentUpdate
from studyaid.services.documents import DocumentService, estimate_read_time
from studyaid.session.cancellation import CancellationToken
from studyaid.middleware.error_handling import QueryCancelledError
from tests.conftest import NOW, USER_ID


@pytest.fixture
def service(data, executor) -> DocumentService:
    return DocumentService(data, executor, clock=lambda: NOW)


@pytest.fixture
def library(data) -> None:
    data.seed(
        "documents",
        {"user_id": USER_ID, "title": "Old starred", "is_starred": True, "is_draft": False,
         "created_at": (NOW - timedelta(days=30)).isoformat()},
        {"user_id": USER_ID, "title": "Recent draft", "is_draft": True,
         "created_at": (NOW - timedelta(days=2)).isoformat()},
        {"user_id": USER_ID, "title": "Newest", "is_draft": False,
         "created_at": (NOW - timedelta(hours=1)).isoformat()},
    )


class TestEstimateReadTime:
    def test_minimum_one_minute(self) -> None:
        assert estimate_read_time("") == 1
        assert estimate_read_time("a few words") == 1

    def test_rounds_up(self) -> None:
        assert estimate_read_time("word " * 201) == 2
        assert estimate_read_time("word " * 400) == 2


class TestListDocuments:
    @pytest.mark.asyncio
    async def test_all_newest_first(self, service, library, signed_in) -> None:
        docs = await service.list_documents()

        assert [d.title for d in docs] == ["Newest", "Recent draft", "Old starred"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "filter,expected",
        [
            (DocumentFilter.STARRED, ["Old starred"]),
            (DocumentFilter.DRAFTS, ["Recent draft"]),
            (DocumentFilter.RECENT, ["Newest", "Recent draft"]),
            ("recent", ["Newest", "Recent draft"]),
        ],
    )
    async def test_filters(self, service, library, signed_in, filter, expected) -> None:
        docs = await service.list_documents(filter)

        assert [d.title for d in docs] == expected

    @pytest.mark.asyncio
    async def test_cancelled_by_caller(self, service, library, signed_in) -> None:
        signal = CancellationToken()
        signal.cancel()

        with pytest.raises(QueryCancelledError):
            await service.list_documents(signal=signal)


class TestDocumentCrud:
    @pytest.mark.asyncio
    async def test_create_estimates_read_time(self, service, data, signed_in) -> None:
        doc = await service.create_document(
            DocumentCreate(title="  Lecture 1  ", original_text="word " * 450)
        )

        assert doc.title == "Lecture 1"
        assert doc.user_id == USER_ID
        assert doc.read_time_minutes == 3
        assert doc.is_draft is True

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, service, signed_in) -> None:
        assert await service.get_document("missing") is None

    @pytest.mark.asyncio
    async def test_get(self, service, data, signed_in) -> None:
        (row,) = data.seed("documents", {"user_id": USER_ID, "title": "Notes"})

        doc = await service.get_document(row["id"])

        assert doc.title == "Notes"

    @pytest.mark.asyncio
    async def test_update_only_sends_set_fields(self, service, data, signed_in) -> None:
        (row,) = data.seed("documents", {"user_id": USER_ID, "title": "Notes", "is_starred": True})

        doc = await service.update_document(row["id"], DocumentUpdate(title="Renamed"))

        assert doc.title == "Renamed"
        assert doc.is_starred is True

    @pytest.mark.asyncio
    async def test_update_missing(self, service, signed_in) -> None:
        with pytest.raises(NotFoundError):
            await service.update_document("missing", DocumentUpdate(title="x"))

    @pytest.mark.asyncio
    async def test_toggle_star(self, service, data, signed_in) -> None:
        (row,) = data.seed("documents", {"user_id": USER_ID, "title": "Notes"})

        doc = await service.toggle_star(row["id"], True)

        assert doc.is_starred is True

    @pytest.mark.asyncio
    async def test_delete(self, service, data, signed_in) -> None:
        (row,) = data.seed("documents", {"user_id": USER_ID, "title": "Notes"})

        await service.delete_document(row["id"])

        assert data.rows("documents") == []
