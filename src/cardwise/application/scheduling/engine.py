"""
SM-2 scheduling engine.

This is a pure computation module with no I/O: the next ReviewState is a
function of the current state, the quality score and the review time only.
"""

from datetime import datetime, timedelta

from cardwise.domain.constants import (
    FIRST_INTERVAL_DAYS,
    MAX_QUALITY,
    MIN_EASE_FACTOR,
    MIN_QUALITY,
    PASSING_QUALITY,
    SECOND_INTERVAL_DAYS,
)
from cardwise.domain.exceptions import InvalidQualityError
from cardwise.domain.review.models import ReviewState
from cardwise.domain.review.rounding import round_half_up


def validate_quality(quality: object) -> int:
    """
    Return quality unchanged if it is an integer in 0..5.

    Raises:
        InvalidQualityError: For anything else, including bools and floats.
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(quality)
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidQualityError(quality)
    return quality


def is_passing(quality: int) -> bool:
    return quality >= PASSING_QUALITY


def next_ease_factor(ease_factor: float, quality: int) -> float:
    """
    EF' = EF + (0.1 - (5-q) * (0.08 + (5-q) * 0.02)), floored at 1.3.

    q=5 adds 0.1, q=4 keeps EF, q=3 subtracts 0.14.
    """
    miss = MAX_QUALITY - quality
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def next_interval(state: ReviewState, times_reviewed: int) -> int:
    """
    Interval after a passing review.

    Indexed by the total review count (including this one), not by a run of
    consecutive passes, and multiplied by the ease factor before it is updated.
    """
    if times_reviewed == 1:
        return FIRST_INTERVAL_DAYS
    if times_reviewed == 2:
        return SECOND_INTERVAL_DAYS
    return max(1, round_half_up(state.interval_days * state.ease_factor))


def record_review(state: ReviewState, quality: int, now: datetime) -> ReviewState:
    """
    Apply one answer to a card's review state.

    Args:
        state: Current state; not modified.
        quality: Self-assessed recall, 0 (blackout) to 5 (perfect).
        now: Review time. next_review_at is now + interval_days.

    Returns:
        The state that fully replaces the stored one.

    Raises:
        InvalidQualityError: If quality is not an integer in 0..5.
    """
    validate_quality(quality)
    times_reviewed = state.times_reviewed + 1

    if is_passing(quality):
        correct_count = state.correct_count + 1
        incorrect_count = state.incorrect_count
        interval_days = next_interval(state, times_reviewed)
        ease_factor = next_ease_factor(state.ease_factor, quality)
    else:
        # Lapse: restart the interval, keep the ease factor
        correct_count = state.correct_count
        incorrect_count = state.incorrect_count + 1
        interval_days = FIRST_INTERVAL_DAYS
        ease_factor = state.ease_factor

    return ReviewState(
        times_reviewed=times_reviewed,
        correct_count=correct_count,
        incorrect_count=incorrect_count,
        last_reviewed_at=now,
        next_review_at=now + timedelta(days=interval_days),
        interval_days=interval_days,
        ease_factor=ease_factor,
    )
