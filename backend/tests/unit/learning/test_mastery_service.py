"""
Unit tests for MasteryService and the mastery overview.
"""

import pytest

from studyaid.services.learning.mastery_service import MasteryService, summarize_mastery
from tests.conftest import NOW, USER_ID


@pytest.fixture
def service(data, executor) -> MasteryService:
    return MasteryService(data, executor, clock=lambda: NOW)


class TestSummarizeMastery:
    def test_empty(self) -> None:
        overview = summarize_mastery([])

        assert overview.total_concepts == 0
        assert overview.average_mastery == 0

    def test_buckets_and_average(self) -> None:
        overview = summarize_mastery([90, 80, 60, 40, 10])

        assert overview.total_concepts == 5
        assert overview.mastered_concepts == 2
        assert overview.learning_concepts == 2
        assert overview.needs_work_concepts == 1
        assert overview.average_mastery == 56

    def test_average_rounds_half_up(self) -> None:
        assert summarize_mastery([50, 51]).average_mastery == 51


class TestUpdateConceptMastery:
    @pytest.mark.asyncio
    async def test_first_review_creates_record(self, service, data, signed_in) -> None:
        record = await service.update_concept_mastery("doc-1", "mitosis", was_correct=True)

        assert record.times_reviewed == 1
        assert record.times_correct == 1
        assert record.mastery_score == pytest.approx(86.7)
        assert record.user_id == USER_ID
        assert ("insert", "concept_mastery") in data.calls

    @pytest.mark.asyncio
    async def test_later_reviews_update_counters(self, service, data, signed_in) -> None:
        await service.update_concept_mastery("doc-1", "mitosis", was_correct=True)

        record = await service.update_concept_mastery("doc-1", "mitosis", was_correct=False)

        assert record.times_reviewed == 2
        assert record.times_correct == 1
        # 50 × 1.0 × 0.85 × 1.04
        assert record.mastery_score == pytest.approx(44.2)
        assert len(data.rows("concept_mastery")) == 1

    @pytest.mark.asyncio
    async def test_keywords_tracked_separately(self, service, data, signed_in) -> None:
        await service.update_concept_mastery("doc-1", "mitosis", was_correct=True)
        await service.update_concept_mastery("doc-1", "meiosis", was_correct=False)

        records = await service.get_document_mastery("doc-1")

        assert [r.keyword for r in records] == ["mitosis", "meiosis"]


class TestOverallMastery:
    @pytest.mark.asyncio
    async def test_only_current_user(self, service, data, signed_in) -> None:
        data.seed(
            "concept_mastery",
            {"user_id": USER_ID, "document_id": "d", "keyword": "a", "mastery_score": 90},
            {"user_id": USER_ID, "document_id": "d", "keyword": "b", "mastery_score": 30},
            {"user_id": "other", "document_id": "d", "keyword": "c", "mastery_score": 100},
        )

        overview = await service.get_overall_mastery()

        assert overview.total_concepts == 2
        assert overview.mastered_concepts == 1
        assert overview.needs_work_concepts == 1
        assert overview.average_mastery == 60
