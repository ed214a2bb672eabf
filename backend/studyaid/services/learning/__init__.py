"""
Learning services: SM-2 scheduling, Weighted Mastery Score, flashcards and
concept mastery tracking.
"""

from studyaid.services.learning.flashcard_service import FlashcardService, calculate_streak
from studyaid.services.learning.forecast import get_review_forecast
from studyaid.services.learning.mastery import compute_mastery, mastery_level
from studyaid.services.learning.mastery_service import MasteryService, summarize_mastery
from studyaid.services.learning.sm2 import SM2Result, compute_next_review, next_review_date

__all__ = [
    "FlashcardService",
    "MasteryService",
    "SM2Result",
    "calculate_streak",
    "compute_mastery",
    "compute_next_review",
    "get_review_forecast",
    "mastery_level",
    "next_review_date",
    "summarize_mastery",
]
