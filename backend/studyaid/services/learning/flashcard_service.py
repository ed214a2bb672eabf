"""
Flashcard Service

Flashcard generation from a document's study questions, SM-2 review
recording, and study session bookkeeping.

Tables:
    flashcards      - one row per card, carries SM-2 scheduling state
    card_reviews    - append-only log of review ratings
    study_sessions  - one row per study sitting

Usage:
    service = FlashcardService(data, executor)

    cards = await service.generate_flashcards_from_document(document_id)
    due = await service.get_due_flashcards()
    card = await service.record_card_review(card.id, quality=4, session_id=sid)
    stats = await service.get_study_stats()
"""

import logging
from datetime import date, timedelta
from typing import Any, Optional

from studyaid.clients.protocols import Filter, Order
from studyaid.enums.learning import StudySessionType
from studyaid.middleware.error_handling import NoRowsError, NotFoundError, ValidationError
from studyaid.models.learning import (
    CardReviewCreate,
    Flashcard,
    FlashcardCreate,
    StudySession,
    StudyStats,
)
from studyaid.models.processing import StudyQuestion
from studyaid.services.base import BackendService
from studyaid.services.learning.sm2 import (
    DEFAULT_EASE_FACTOR,
    clamp_quality,
    compute_next_review,
    next_review_date,
    round_half_up,
)

logger = logging.getLogger(__name__)


def calculate_streak(session_days: set[date], today: date) -> int:
    """
    Count consecutive study days ending today.

    A user who has not studied today has no running streak.
    """
    streak = 0
    day = today
    while day in session_days:
        streak += 1
        day -= timedelta(days=1)
    return streak


class FlashcardService(BackendService):
    """Flashcards, reviews and study sessions for the signed-in user."""

    # =========================================================================
    # Cards
    # =========================================================================

    async def generate_flashcards_from_document(self, document_id: str) -> list[Flashcard]:
        """
        Create one flashcard per study question of the document's summary.

        Idempotent: if the user already has cards for the document, those
        are returned and nothing is inserted.

        Raises:
            NotFoundError: The document has no summary yet
            ValidationError: The summary has no study questions
        """
        user_id = await self.user_id()

        existing = await self.get_flashcards(document_id)
        if existing:
            logger.info(f"Returning {len(existing)} existing flashcards for {document_id}")
            return existing

        async def fetch_questions(token) -> list[dict[str, Any]]:
            row = await self.data.select_one(
                "summaries",
                columns="study_questions",
                filters=[Filter("document_id", "eq", document_id)],
                token=token,
            )
            return row.get("study_questions") or []

        try:
            raw_questions = await self.read(fetch_questions, name="get_study_questions")
        except NoRowsError:
            raise NotFoundError("No summary found for document", details={"document_id": document_id})

        if not raw_questions:
            raise ValidationError("No study questions available")

        questions = [StudyQuestion.model_validate(q) for q in raw_questions]
        payload = [
            FlashcardCreate(
                user_id=user_id,
                document_id=document_id,
                front=q.question,
                back=q.answer,
                difficulty=q.difficulty,
                ease_factor=DEFAULT_EASE_FACTOR,
            ).model_dump(mode="json")
            for q in questions
        ]

        rows = await self.write(
            lambda: self.data.insert("flashcards", payload), name="create_flashcards"
        )
        logger.info(f"Created {len(rows)} flashcards for document {document_id}")
        return [Flashcard.model_validate(row) for row in rows]

    async def get_flashcards(self, document_id: str) -> list[Flashcard]:
        user_id = await self.user_id()

        async def fetch(token) -> list[dict[str, Any]]:
            return await self.data.select(
                "flashcards",
                filters=[
                    Filter("document_id", "eq", document_id),
                    Filter("user_id", "eq", user_id),
                ],
                order=Order("created_at"),
                token=token,
            )

        rows = await self.read(fetch, name="get_flashcards")
        return [Flashcard.model_validate(row) for row in rows]

    async def get_due_flashcards(self, document_id: Optional[str] = None) -> list[Flashcard]:
        """Cards whose next review date has passed, soonest first."""
        user_id = await self.user_id()
        filters = [
            Filter("user_id", "eq", user_id),
            Filter("next_review_date", "lte", self.clock()),
        ]
        if document_id:
            filters.append(Filter("document_id", "eq", document_id))

        async def fetch(token) -> list[dict[str, Any]]:
            return await self.data.select(
                "flashcards",
                filters=filters,
                order=Order("next_review_date"),
                token=token,
            )

        rows = await self.read(fetch, name="get_due_flashcards")
        return [Flashcard.model_validate(row) for row in rows]

    # =========================================================================
    # Reviews
    # =========================================================================

    async def record_card_review(
        self,
        flashcard_id: str,
        quality: int,
        session_id: Optional[str] = None,
        time_spent_ms: Optional[int] = None,
    ) -> Flashcard:
        """
        Apply a review rating to a card and log the review.

        Args:
            flashcard_id: Card being reviewed
            quality: SM-2 rating 0-5 (out-of-range values are clamped)
            session_id: Study session the review belongs to
            time_spent_ms: Time the user spent on the card

        Returns:
            The updated flashcard

        Raises:
            NotFoundError: If the card does not exist
        """
        user_id = await self.user_id()

        async def fetch(token) -> dict[str, Any]:
            return await self.data.select_one(
                "flashcards", filters=[Filter("id", "eq", flashcard_id)], token=token
            )

        try:
            card = Flashcard.model_validate(await self.read(fetch, name="get_flashcard"))
        except NoRowsError:
            raise NotFoundError("Flashcard not found", details={"flashcard_id": flashcard_id})

        result = compute_next_review(
            quality, card.repetitions, card.ease_factor, card.interval_days
        )
        now = self.clock()
        changes = {
            "repetitions": result.repetitions,
            "ease_factor": result.ease_factor,
            "interval_days": result.interval_days,
            "next_review_date": next_review_date(result.interval_days, now).isoformat(),
            "last_reviewed_at": now.isoformat(),
        }

        rows = await self.write(
            lambda: self.data.update(
                "flashcards", changes, filters=[Filter("id", "eq", flashcard_id)]
            ),
            name="update_flashcard",
        )
        if not rows:
            raise NotFoundError("Flashcard not found", details={"flashcard_id": flashcard_id})

        review = CardReviewCreate(
            flashcard_id=flashcard_id,
            user_id=user_id,
            quality=clamp_quality(quality),
            session_id=session_id,
            time_spent_ms=time_spent_ms,
        )
        await self.write(
            lambda: self.data.insert("card_reviews", review.model_dump(mode="json")),
            name="insert_card_review",
        )

        logger.debug(
            f"Reviewed card {flashcard_id[:8]}: q={quality} "
            f"interval={result.interval_days}d ease={result.ease_factor}"
        )
        return Flashcard.model_validate(rows[0])

    # =========================================================================
    # Study sessions
    # =========================================================================

    async def start_study_session(
        self,
        document_id: Optional[str] = None,
        session_type: StudySessionType = StudySessionType.REVIEW,
    ) -> StudySession:
        user_id = await self.user_id()
        payload = {
            "user_id": user_id,
            "document_id": document_id,
            "session_type": StudySessionType(session_type).value,
        }
        rows = await self.write(
            lambda: self.data.insert("study_sessions", payload), name="start_study_session"
        )
        return StudySession.model_validate(rows[0])

    async def end_study_session(
        self, session_id: str, cards_studied: int, cards_correct: int
    ) -> None:
        changes = {
            "ended_at": self.clock().isoformat(),
            "cards_studied": cards_studied,
            "cards_correct": cards_correct,
        }
        await self.write(
            lambda: self.data.update(
                "study_sessions", changes, filters=[Filter("id", "eq", session_id)]
            ),
            name="end_study_session",
        )

    async def get_study_stats(self) -> StudyStats:
        """Totals over completed sessions plus the current daily streak."""
        user_id = await self.user_id()

        async def fetch(token) -> list[dict[str, Any]]:
            return await self.data.select(
                "study_sessions",
                filters=[
                    Filter("user_id", "eq", user_id),
                    Filter("ended_at", "not.is", None),
                ],
                token=token,
            )

        rows = await self.read(fetch, name="get_study_stats")
        if not rows:
            return StudyStats()

        sessions = [StudySession.model_validate(row) for row in rows]
        total_studied = sum(s.cards_studied or 0 for s in sessions)
        total_correct = sum(s.cards_correct or 0 for s in sessions)
        accuracy = int(round_half_up(total_correct / total_studied * 100)) if total_studied else 0

        session_days = {s.started_at.date() for s in sessions}
        return StudyStats(
            total_cards_studied=total_studied,
            total_sessions_completed=len(sessions),
            average_accuracy=accuracy,
            streak_days=calculate_streak(session_days, self.clock().date()),
        )
