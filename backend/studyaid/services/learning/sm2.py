"""
SM-2 Spaced Repetition Scheduling

Pure implementation of the SM-2 review scheduler. Every flashcard carries
three pieces of scheduling state which a review rating transforms:

- repetitions: consecutive correct reviews since the last lapse
- ease_factor: growth multiplier for the interval (never below 1.3)
- interval_days: days until the card is due again

Quality scale (0-5):
    5 perfect recall, 4 correct after hesitation, 3 correct with difficulty,
    2 incorrect but familiar, 1 incorrect, 0 complete blackout

Ratings of 3 and above count as correct and grow the interval
(1 day, then 6 days, then interval × ease factor). Lower ratings reset the
card to a 1-day interval. No I/O, no clock except in next_review_date().

Usage:
    from studyaid.services.learning.sm2 import compute_next_review, next_review_date

    result = compute_next_review(quality=4, repetitions=2, ease_factor=2.5, interval_days=6)
    due = next_review_date(result.interval_days)
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from studyaid.config import settings

MIN_EASE_FACTOR = settings.SM2_MIN_EASE_FACTOR
DEFAULT_EASE_FACTOR = settings.SM2_DEFAULT_EASE_FACTOR
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3


@dataclass(frozen=True)
class SM2Result:
    """Scheduling state after one review."""

    repetitions: int
    ease_factor: float
    interval_days: int


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a calculator (0.5 goes up), not like round() (banker's)."""
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def clamp_quality(quality: int) -> int:
    return max(MIN_QUALITY, min(MAX_QUALITY, quality))


def compute_next_review(
    quality: int,
    repetitions: int,
    ease_factor: float,
    interval_days: int,
) -> SM2Result:
    """
    Apply one review rating to a card's scheduling state.

    Args:
        quality: Review rating, clamped to 0-5
        repetitions: Consecutive correct reviews so far
        ease_factor: Current ease factor
        interval_days: Current interval in days

    Returns:
        SM2Result with the new repetitions, ease factor and interval
    """
    q = clamp_quality(quality)

    if q >= PASSING_QUALITY:
        if repetitions == 0:
            new_interval = 1
        elif repetitions == 1:
            new_interval = 6
        else:
            new_interval = int(round_half_up(interval_days * ease_factor))
        new_repetitions = repetitions + 1
    else:
        # Lapse: start the card over
        new_repetitions = 0
        new_interval = 1

    miss = MAX_QUALITY - q
    new_ease = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    new_ease = max(MIN_EASE_FACTOR, new_ease)

    return SM2Result(
        repetitions=new_repetitions,
        ease_factor=round_half_up(new_ease, 2),
        interval_days=new_interval,
    )


def next_review_date(interval_days: int, now: Optional[datetime] = None) -> datetime:
    """When a card with the given interval is next due (UTC)."""
    current = now or datetime.now(timezone.utc)
    return current + timedelta(days=interval_days)
