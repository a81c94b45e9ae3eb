"""
Due-set selection for study sessions.

Picks the cards of a stack whose next review has arrived (or was never
scheduled) and orders them so unseen cards come first, then the most
overdue ones.
"""

from collections.abc import Iterable
from datetime import datetime

from cardwise.domain.review.models import Card


def is_due(card: Card, now: datetime) -> bool:
    """
    A card is due if any of:
    - it has no next_review_at (never scheduled)
    - next_review_at <= now
    - it was never reviewed, even if a next_review_at was somehow set
    """
    review = card.review
    if review.next_review_at is None:
        return True
    if review.next_review_at <= now:
        return True
    return review.times_reviewed == 0


def _due_order(card: Card) -> tuple:
    next_at = card.review.next_review_at
    # Absent dates sort before any scheduled date
    return (next_at is not None, next_at or card.created_at, card.created_at)


def select_due(
    cards: Iterable[Card],
    now: datetime,
    limit: int | None = None,
) -> list[Card]:
    """
    Return the due cards as a new list.

    Ordered ascending by next_review_at with unscheduled cards first, ties
    broken by ascending created_at. An empty result is not an error.

    Args:
        cards: Cards of one stack.
        now: Reference time.
        limit: Maximum batch size; None returns every due card.
    """
    due = sorted((c for c in cards if is_due(c, now)), key=_due_order)
    if limit is not None:
        if limit < 0:
            raise ValueError("limit cannot be negative")
        due = due[:limit]
    return due
