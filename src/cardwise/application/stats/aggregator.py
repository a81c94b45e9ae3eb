"""
Stack-level answer counters.

record_collection_review must be called exactly once per record_review on
one of the stack's cards, with was_correct = quality >= 3. Nothing enforces
this automatically; StudyService follows the protocol, and
recompute_collection_stats/find_drift exist to detect when stored counters
have diverged from the cards.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from cardwise.domain.review.models import Card, CollectionStats
from cardwise.domain.review.rounding import percent


def record_collection_review(
    stats: CollectionStats,
    was_correct: bool,
    now: datetime,
) -> CollectionStats:
    """Return the stack counters after one more answered card."""
    total = stats.total_reviewed + 1
    correct = stats.correct_answers + (1 if was_correct else 0)
    incorrect = stats.incorrect_answers + (0 if was_correct else 1)
    return CollectionStats(
        total_reviewed=total,
        correct_answers=correct,
        incorrect_answers=incorrect,
        last_reviewed_at=now,
        average_score_percent=percent(correct, total),
    )


def recompute_collection_stats(cards: Iterable[Card]) -> CollectionStats:
    """
    Rebuild stack counters from the review states of its cards.

    last_reviewed_at is the latest review across the cards.
    """
    correct = incorrect = 0
    last: datetime | None = None
    for card in cards:
        correct += card.review.correct_count
        incorrect += card.review.incorrect_count
        reviewed_at = card.review.last_reviewed_at
        if reviewed_at is not None and (last is None or reviewed_at > last):
            last = reviewed_at

    total = correct + incorrect
    return CollectionStats(
        total_reviewed=total,
        correct_answers=correct,
        incorrect_answers=incorrect,
        last_reviewed_at=last,
        average_score_percent=percent(correct, total),
    )


@dataclass
class DriftReport:
    """Difference between stored stack counters and the card tallies."""

    stored: CollectionStats
    recomputed: CollectionStats

    @property
    def total_delta(self) -> int:
        return self.stored.total_reviewed - self.recomputed.total_reviewed

    @property
    def correct_delta(self) -> int:
        return self.stored.correct_answers - self.recomputed.correct_answers

    @property
    def incorrect_delta(self) -> int:
        return self.stored.incorrect_answers - self.recomputed.incorrect_answers

    @property
    def has_drift(self) -> bool:
        return bool(self.total_delta or self.correct_delta or self.incorrect_delta)


def find_drift(stats: CollectionStats, cards: Iterable[Card]) -> DriftReport:
    """
    Compare stored counters against the cards.

    Counters of cards that were deleted from the stack still count in the
    stored totals, so a positive delta is expected after deletions.
    """
    return DriftReport(stored=stats, recomputed=recompute_collection_stats(cards))
