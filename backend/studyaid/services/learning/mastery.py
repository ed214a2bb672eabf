"""
Weighted Mastery Score (WMS)

Scores how well a user knows one concept (keyword) on a 0-100 scale:

    score = accuracy × recency × difficulty × repetition bonus

- accuracy: times_correct / times_reviewed × 100
- recency: 1.0 on the day of the last review, losing 2.5% per day,
  floored at 0.25 (roughly 30 days out)
- difficulty: easy 1.0, medium 0.85, hard 0.7
- repetition bonus: +2% per review, capped at 1.2

The result is rounded to 2 decimals and capped at 100. The only
time-dependent input is the number of whole days since the last review.

Usage:
    score = compute_mastery(times_reviewed=10, times_correct=8,
                            last_reviewed_at=row.last_reviewed_at,
                            difficulty=Difficulty.MEDIUM)
    level = mastery_level(score)
"""

import math
from datetime import datetime, timezone
from typing import Optional

from studyaid.enums.learning import Difficulty, MasteryLevel
from studyaid.services.learning.sm2 import round_half_up

SECONDS_PER_DAY = 86400

RECENCY_DECAY_PER_DAY = 0.025
MIN_RECENCY_WEIGHT = 0.25
REPETITION_BONUS_PER_REVIEW = 0.02
MAX_REPETITION_BONUS = 1.2
MAX_SCORE = 100.0

DIFFICULTY_WEIGHTS: dict[Difficulty, float] = {
    Difficulty.EASY: 1.0,
    Difficulty.MEDIUM: 0.85,
    Difficulty.HARD: 0.7,
}

MASTERED_THRESHOLD = 80.0
LEARNING_THRESHOLD = 40.0


def days_since(last_reviewed_at: Optional[datetime], now: Optional[datetime] = None) -> int:
    """Whole days elapsed since ``last_reviewed_at`` (0 when never reviewed)."""
    if last_reviewed_at is None:
        return 0
    current = now or datetime.now(timezone.utc)
    if last_reviewed_at.tzinfo is None:
        last_reviewed_at = last_reviewed_at.replace(tzinfo=timezone.utc)
    elapsed = (current - last_reviewed_at).total_seconds()
    return max(0, math.floor(elapsed / SECONDS_PER_DAY))


def recency_weight(days: int) -> float:
    return max(MIN_RECENCY_WEIGHT, 1 - days * RECENCY_DECAY_PER_DAY)


def compute_mastery(
    times_reviewed: int,
    times_correct: int,
    last_reviewed_at: Optional[datetime],
    difficulty: Difficulty | str = Difficulty.MEDIUM,
    now: Optional[datetime] = None,
) -> float:
    """
    Compute the Weighted Mastery Score.

    Args:
        times_reviewed: Total reviews of the concept
        times_correct: Correct reviews of the concept
        last_reviewed_at: When the concept was last reviewed (None: full weight)
        difficulty: Concept difficulty (unknown values weigh as medium)
        now: Reference time (defaults to the current UTC time)

    Returns:
        Score in [0, 100], rounded to 2 decimals
    """
    if times_reviewed <= 0:
        return 0.0

    accuracy = times_correct / times_reviewed * 100
    recency = recency_weight(days_since(last_reviewed_at, now))

    try:
        difficulty_weight = DIFFICULTY_WEIGHTS[Difficulty(difficulty)]
    except ValueError:
        difficulty_weight = DIFFICULTY_WEIGHTS[Difficulty.MEDIUM]

    repetition_bonus = min(MAX_REPETITION_BONUS, 1 + times_reviewed * REPETITION_BONUS_PER_REVIEW)

    score = round_half_up(accuracy * recency * difficulty_weight * repetition_bonus, 2)
    return min(MAX_SCORE, score)


def mastery_level(
    score: float,
    mastered_threshold: float = MASTERED_THRESHOLD,
    learning_threshold: float = LEARNING_THRESHOLD,
) -> MasteryLevel:
    if score >= mastered_threshold:
        return MasteryLevel.MASTERED
    if score >= learning_threshold:
        return MasteryLevel.LEARNING
    return MasteryLevel.NEEDS_WORK
