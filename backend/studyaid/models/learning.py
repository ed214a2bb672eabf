"""
Learning System Models (Pydantic)

Row and payload schemas for the learning tables:
- flashcards (SM-2 scheduling state)
- card_reviews (one row per recorded review)
- study_sessions
- concept_mastery (Weighted Mastery Score per keyword)

Plus the aggregate statistics returned by the learning services.

Data flows: PostgREST row → StrictResponse model → Service → Caller
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from studyaid.enums.learning import Difficulty, StudySessionType
from studyaid.models.base import StrictRequest, StrictResponse


# ===========================================
# Flashcards
# ===========================================


class Flashcard(StrictResponse):
    """
    A flashcard with its SM-2 scheduling state.

    Created once per study question at generation time and mutated only by
    review recording.
    """

    id: str
    user_id: str
    document_id: str
    front: str
    back: str
    difficulty: Difficulty = Difficulty.MEDIUM
    ease_factor: float = Field(2.5, ge=1.3)
    interval_days: int = Field(0, ge=0)
    repetitions: int = Field(0, ge=0)
    next_review_date: datetime
    last_reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class FlashcardCreate(StrictRequest):
    """Insert payload for a new flashcard in its initial SM-2 state."""

    user_id: str
    document_id: str
    front: str
    back: str
    difficulty: Difficulty = Difficulty.MEDIUM
    ease_factor: float = Field(..., gt=0)
    interval_days: int = 0
    repetitions: int = 0


class CardReviewCreate(StrictRequest):
    """Insert payload for a card_reviews row."""

    flashcard_id: str
    user_id: str
    quality: int = Field(..., ge=0, le=5)
    session_id: Optional[str] = None
    time_spent_ms: Optional[int] = Field(default=None, ge=0)


# ===========================================
# Study Sessions
# ===========================================


class StudySession(StrictResponse):
    """A study session row."""

    id: str
    user_id: str
    document_id: Optional[str] = None
    started_at: datetime
    ended_at: Optional[datetime] = None
    cards_studied: int = 0
    cards_correct: int = 0
    session_type: StudySessionType = StudySessionType.REVIEW


class StudyStats(StrictResponse):
    """Aggregate statistics over completed study sessions."""

    total_cards_studied: int = 0
    total_sessions_completed: int = 0
    average_accuracy: int = 0  # percent, rounded
    streak_days: int = 0


# ===========================================
# Concept Mastery
# ===========================================


class ConceptMastery(StrictResponse):
    """
    Mastery record for one keyword of one document.

    Unique per (user, document, keyword). Review counters never decrease.
    """

    id: str
    user_id: str
    document_id: str
    keyword: str
    mastery_score: float = Field(0.0, ge=0, le=100)
    times_reviewed: int = Field(0, ge=0)
    times_correct: int = Field(0, ge=0)
    last_reviewed_at: Optional[datetime] = None


class MasteryOverview(StrictResponse):
    """Distribution of a user's concept mastery scores."""

    total_concepts: int = 0
    mastered_concepts: int = 0  # WMS >= 80
    learning_concepts: int = 0  # 40 <= WMS < 80
    needs_work_concepts: int = 0  # WMS < 40
    average_mastery: int = 0


class ReviewForecast(StrictResponse):
    """Counts of cards by when they fall due."""

    overdue: int = 0
    today: int = 0
    tomorrow: int = 0
    this_week: int = 0
    later: int = 0
