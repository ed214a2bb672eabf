"""
Unit tests for the SM-2 scheduler.
"""

from datetime import datetime, timedelta, timezone

import pytest

from studyaid.config import settings
from studyaid.services.learning.sm2 import (
    DEFAULT_EASE_FACTOR,
    MIN_EASE_FACTOR,
    SM2Result,
    clamp_quality,
    compute_next_review,
    next_review_date,
    round_half_up,
)


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value,digits,expected",
        [
            (2.5, 0, 3.0),
            (3.5, 0, 4.0),
            (2.4, 0, 2.0),
            (1.125, 2, 1.13),
            (2.6, 2, 2.6),
        ],
    )
    def test_rounds_half_up(self, value, digits, expected) -> None:
        assert round_half_up(value, digits) == pytest.approx(expected)


class TestComputeNextReview:
    def test_first_correct_review(self) -> None:
        result = compute_next_review(quality=4, repetitions=0, ease_factor=2.5, interval_days=0)

        assert result == SM2Result(repetitions=1, ease_factor=2.5, interval_days=1)

    def test_second_correct_review(self) -> None:
        result = compute_next_review(quality=5, repetitions=1, ease_factor=2.5, interval_days=1)

        assert result.repetitions == 2
        assert result.interval_days == 6
        assert result.ease_factor == pytest.approx(2.6)

    def test_later_reviews_multiply_interval(self) -> None:
        result = compute_next_review(quality=4, repetitions=2, ease_factor=2.5, interval_days=6)

        assert result.interval_days == 15
        assert result.repetitions == 3

    def test_interval_rounds_half_up(self) -> None:
        # 5 * 2.5 = 12.5 → 13
        result = compute_next_review(quality=4, repetitions=3, ease_factor=2.5, interval_days=5)

        assert result.interval_days == 13

    def test_quality_three_passes_with_ease_penalty(self) -> None:
        result = compute_next_review(quality=3, repetitions=2, ease_factor=2.5, interval_days=6)

        assert result.repetitions == 3
        assert result.ease_factor == pytest.approx(2.36)

    def test_lapse_resets(self) -> None:
        result = compute_next_review(quality=2, repetitions=5, ease_factor=2.5, interval_days=40)

        assert result.repetitions == 0
        assert result.interval_days == 1
        assert result.ease_factor == pytest.approx(2.18)

    def test_ease_factor_floor(self) -> None:
        result = compute_next_review(quality=0, repetitions=3, ease_factor=1.3, interval_days=10)

        assert result.ease_factor == MIN_EASE_FACTOR

    def test_perfect_first_review_raises_ease(self) -> None:
        result = compute_next_review(quality=5, repetitions=0, ease_factor=2.5, interval_days=0)

        assert result.repetitions == 1
        assert result.interval_days == 1
        assert result.ease_factor > 2.5

    def test_failed_mature_card_starts_over(self) -> None:
        result = compute_next_review(quality=1, repetitions=4, ease_factor=2.0, interval_days=20)

        assert result.repetitions == 0
        assert result.interval_days == 1
        assert result.ease_factor < 2.0

    @pytest.mark.parametrize("quality", [0, 1, 2])
    @pytest.mark.parametrize("repetitions,interval_days", [(0, 0), (1, 1), (3, 15), (8, 120)])
    def test_every_failing_quality_resets(self, quality, repetitions, interval_days) -> None:
        result = compute_next_review(quality, repetitions, 2.5, interval_days)

        assert result.repetitions == 0
        assert result.interval_days == 1

    @pytest.mark.parametrize("quality", range(0, 6))
    @pytest.mark.parametrize("ease_factor", [1.3, 1.35, 1.5, 2.0, 2.5, 3.0])
    @pytest.mark.parametrize("repetitions", [0, 1, 2, 5])
    def test_ease_factor_never_below_floor(self, quality, ease_factor, repetitions) -> None:
        result = compute_next_review(quality, repetitions, ease_factor, interval_days=6)

        assert result.ease_factor >= MIN_EASE_FACTOR

    def test_quality_is_clamped(self) -> None:
        high = compute_next_review(quality=9, repetitions=0, ease_factor=2.5, interval_days=0)
        low = compute_next_review(quality=-3, repetitions=0, ease_factor=2.5, interval_days=0)

        assert high == compute_next_review(5, 0, 2.5, 0)
        assert low == compute_next_review(0, 0, 2.5, 0)

    def test_clamp_quality(self) -> None:
        assert clamp_quality(-1) == 0
        assert clamp_quality(3) == 3
        assert clamp_quality(7) == 5


class TestConfiguredConstants:
    def test_ease_factors_come_from_settings(self) -> None:
        assert MIN_EASE_FACTOR == settings.SM2_MIN_EASE_FACTOR
        assert DEFAULT_EASE_FACTOR == settings.SM2_DEFAULT_EASE_FACTOR


class TestNextReviewDate:
    def test_adds_interval(self) -> None:
        now = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)

        assert next_review_date(6, now) == now + timedelta(days=6)

    def test_defaults_to_now(self) -> None:
        due = next_review_date(1)

        assert due.tzinfo is not None
        assert due > datetime.now(timezone.utc)
