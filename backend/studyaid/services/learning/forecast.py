"""
Review forecast: how many cards fall due when.
"""

from datetime import date, timedelta
from typing import Iterable, Optional

from studyaid.models.learning import Flashcard, ReviewForecast
from studyaid.services.base import utcnow


def get_review_forecast(
    cards: Iterable[Flashcard], today: Optional[date] = None
) -> ReviewForecast:
    """
    Bucket cards by due date relative to ``today`` (UTC).

    Buckets are exclusive: overdue (before today), today, tomorrow,
    this_week (2-6 days out) and later.
    """
    today = today or utcnow().date()
    tomorrow = today + timedelta(days=1)
    week_end = today + timedelta(days=7)

    counts = {"overdue": 0, "today": 0, "tomorrow": 0, "this_week": 0, "later": 0}
    for card in cards:
        due = card.next_review_date.date()
        if due < today:
            counts["overdue"] += 1
        elif due == today:
            counts["today"] += 1
        elif due == tomorrow:
            counts["tomorrow"] += 1
        elif due < week_end:
            counts["this_week"] += 1
        else:
            counts["later"] += 1

    return ReviewForecast(**counts)
