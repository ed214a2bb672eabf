"""
Learning System Enums

Defines enums for flashcard difficulty, study sessions, mastery buckets
and document list filters.
"""

from enum import Enum


class Difficulty(str, Enum):
    """
    Difficulty of a generated study question / flashcard.

    Also used as the difficulty weight input of the Weighted Mastery Score:
    harder concepts need more correct reviews for the same score.
    """

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class StudySessionType(str, Enum):
    """Types of study sessions."""

    REVIEW = "review"  # Spaced repetition review of due cards
    LEARN = "learn"  # First pass over new cards
    QUIZ = "quiz"  # Self-test without scheduling pressure


class MasteryLevel(str, Enum):
    """
    Mastery buckets derived from the Weighted Mastery Score.

    - MASTERED: score >= 80
    - LEARNING: 40 <= score < 80
    - NEEDS_WORK: score < 40
    """

    MASTERED = "mastered"
    LEARNING = "learning"
    NEEDS_WORK = "needs_work"


class DocumentFilter(str, Enum):
    """Library list filters."""

    ALL = "all"
    STARRED = "starred"
    DRAFTS = "drafts"
    RECENT = "recent"  # Created in the last 7 days
