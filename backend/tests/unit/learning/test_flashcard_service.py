"""
Unit tests for FlashcardService.

Runs the service against the in-memory data client with a signed-in
coordinator, so reads go through the real executor.
"""

from datetime import date, timedelta
from unittest.mock import patch

import pytest

from studyaid.clients.protocols import Filter
from studyaid.enums.learning import Difficulty
from studyaid.middleware.error_handling import AuthenticationError, NotFoundError, ValidationError
from studyaid.services.learning.flashcard_service import FlashcardService, calculate_streak
from tests.conftest import NOW, USER_ID

QUESTIONS = [
    {"question": "What is ATP?", "answer": "The energy currency of the cell.", "difficulty": "easy"},
    {"question": "Why do plants need light?", "answer": "To drive photosynthesis.", "difficulty": "hard"},
]


@pytest.fixture
def service(data, executor) -> FlashcardService:
    return FlashcardService(data, executor, clock=lambda: NOW)


class TestCalculateStreak:
    def test_consecutive_days_ending_today(self) -> None:
        today = date(2024, 3, 15)
        days = {today, today - timedelta(days=1), today - timedelta(days=2)}

        assert calculate_streak(days, today) == 3

    def test_gap_breaks_streak(self) -> None:
        today = date(2024, 3, 15)
        days = {today, today - timedelta(days=2)}

        assert calculate_streak(days, today) == 1

    def test_no_study_today(self) -> None:
        today = date(2024, 3, 15)

        assert calculate_streak({today - timedelta(days=1)}, today) == 0


class TestGenerateFlashcards:
    @pytest.mark.asyncio
    async def test_creates_one_card_per_question(self, service, data, signed_in) -> None:
        data.seed("summaries", {"document_id": "doc-1", "study_questions": QUESTIONS})

        cards = await service.generate_flashcards_from_document("doc-1")

        assert [c.front for c in cards] == ["What is ATP?", "Why do plants need light?"]
        assert [c.difficulty for c in cards] == [Difficulty.EASY, Difficulty.HARD]
        assert all(c.user_id == USER_ID for c in cards)
        assert all(c.repetitions == 0 and c.ease_factor == 2.5 for c in cards)

    @pytest.mark.asyncio
    async def test_new_cards_use_configured_ease(self, service, data, signed_in) -> None:
        data.seed("summaries", {"document_id": "doc-1", "study_questions": QUESTIONS})

        with patch("studyaid.services.learning.flashcard_service.DEFAULT_EASE_FACTOR", 2.2):
            cards = await service.generate_flashcards_from_document("doc-1")

        assert all(c.ease_factor == 2.2 and c.interval_days == 0 for c in cards)
        assert all(row["ease_factor"] == 2.2 for row in data.rows("flashcards"))

    @pytest.mark.asyncio
    async def test_idempotent(self, service, data, signed_in) -> None:
        data.seed("summaries", {"document_id": "doc-1", "study_questions": QUESTIONS})
        first = await service.generate_flashcards_from_document("doc-1")

        second = await service.generate_flashcards_from_document("doc-1")

        assert [c.id for c in second] == [c.id for c in first]
        assert len(data.rows("flashcards")) == 2

    @pytest.mark.asyncio
    async def test_no_summary(self, service, signed_in) -> None:
        with pytest.raises(NotFoundError):
            await service.generate_flashcards_from_document("doc-1")

    @pytest.mark.asyncio
    async def test_no_questions(self, service, data, signed_in) -> None:
        data.seed("summaries", {"document_id": "doc-1", "study_questions": []})

        with pytest.raises(ValidationError, match="No study questions"):
            await service.generate_flashcards_from_document("doc-1")

    @pytest.mark.asyncio
    async def test_requires_sign_in(self, service) -> None:
        with pytest.raises(AuthenticationError):
            await service.generate_flashcards_from_document("doc-1")


class TestDueFlashcards:
    @pytest.mark.asyncio
    async def test_only_due_cards_soonest_first(self, service, data, signed_in) -> None:
        data.seed(
            "flashcards",
            {"user_id": USER_ID, "document_id": "doc-1", "front": "later", "back": "b",
             "next_review_date": (NOW + timedelta(days=3)).isoformat()},
            {"user_id": USER_ID, "document_id": "doc-1", "front": "due", "back": "b",
             "next_review_date": (NOW - timedelta(hours=1)).isoformat()},
            {"user_id": USER_ID, "document_id": "doc-2", "front": "overdue", "back": "b",
             "next_review_date": (NOW - timedelta(days=2)).isoformat()},
            {"user_id": "someone-else", "document_id": "doc-1", "front": "not mine", "back": "b",
             "next_review_date": (NOW - timedelta(days=2)).isoformat()},
        )

        due = await service.get_due_flashcards()
        due_in_doc = await service.get_due_flashcards("doc-1")

        assert [c.front for c in due] == ["overdue", "due"]
        assert [c.front for c in due_in_doc] == ["due"]


class TestRecordCardReview:
    @pytest.mark.asyncio
    async def test_applies_sm2_and_logs_review(self, service, data, signed_in) -> None:
        (card,) = data.seed(
            "flashcards",
            {"user_id": USER_ID, "document_id": "doc-1", "front": "f", "back": "b",
             "repetitions": 2, "interval_days": 6, "ease_factor": 2.5},
        )

        updated = await service.record_card_review(card["id"], quality=4, session_id="s-1", time_spent_ms=5200)

        assert updated.repetitions == 3
        assert updated.interval_days == 15
        assert updated.next_review_date == NOW + timedelta(days=15)
        assert updated.last_reviewed_at == NOW

        (review,) = data.rows("card_reviews")
        assert review["flashcard_id"] == card["id"]
        assert review["quality"] == 4
        assert review["session_id"] == "s-1"
        assert review["time_spent_ms"] == 5200

    @pytest.mark.asyncio
    async def test_out_of_range_quality_is_clamped(self, service, data, signed_in) -> None:
        (card,) = data.seed(
            "flashcards", {"user_id": USER_ID, "document_id": "doc-1", "front": "f", "back": "b"}
        )

        updated = await service.record_card_review(card["id"], quality=11)

        assert updated.repetitions == 1
        assert data.rows("card_reviews")[0]["quality"] == 5

    @pytest.mark.asyncio
    async def test_missing_card(self, service, signed_in) -> None:
        with pytest.raises(NotFoundError):
            await service.record_card_review("nope", quality=3)


class TestStudySessions:
    @pytest.mark.asyncio
    async def test_start_and_end(self, service, data, signed_in) -> None:
        session = await service.start_study_session("doc-1")

        await service.end_study_session(session.id, cards_studied=10, cards_correct=7)

        (row,) = data.rows("study_sessions")
        assert row["user_id"] == USER_ID
        assert row["session_type"] == "review"
        assert row["cards_studied"] == 10
        assert row["ended_at"] == NOW.isoformat()

    @pytest.mark.asyncio
    async def test_stats(self, service, data, signed_in) -> None:
        yesterday = (NOW - timedelta(days=1)).isoformat()
        data.seed(
            "study_sessions",
            {"user_id": USER_ID, "started_at": NOW.isoformat(), "ended_at": NOW.isoformat(),
             "cards_studied": 10, "cards_correct": 8},
            {"user_id": USER_ID, "started_at": yesterday, "ended_at": yesterday,
             "cards_studied": 6, "cards_correct": 3},
            # Still open: ignored
            {"user_id": USER_ID, "started_at": NOW.isoformat(), "ended_at": None,
             "cards_studied": 50, "cards_correct": 0},
        )

        stats = await service.get_study_stats()

        assert stats.total_cards_studied == 16
        assert stats.total_sessions_completed == 2
        # 11 / 16 = 68.75%
        assert stats.average_accuracy == 69
        assert stats.streak_days == 2

    @pytest.mark.asyncio
    async def test_stats_without_sessions(self, service, signed_in) -> None:
        stats = await service.get_study_stats()

        assert stats.total_cards_studied == 0
        assert stats.average_accuracy == 0
        assert stats.streak_days == 0
