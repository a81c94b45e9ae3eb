"""
Metrics calculator for deriving study insights from cards and stacks.

This is a pure computation module with no I/O.
"""

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta, tzinfo

from cardwise.application.scheduling.due_selector import is_due
from cardwise.domain.constants import RECENT_ACTIVITY_DAYS, TOP_STACKS_LIMIT
from cardwise.domain.review.models import Card, Difficulty, MasteryLevel, Stack
from cardwise.domain.review.rounding import percent

from .streak import compute_streak, dates_from_timestamps


@dataclass
class CardMetrics:
    """
    Card review state enriched with computed metrics.
    """

    card_id: str
    stack_id: str
    front: str
    difficulty: Difficulty
    times_reviewed: int
    interval_days: int
    ease_factor: float

    # Computed metrics
    accuracy: int
    mastery_level: MasteryLevel
    is_due: bool
    days_overdue: int | None  # Negative if not yet due, None if never scheduled


@dataclass
class StackSummary:
    stack_id: str
    title: str
    total_reviewed: int
    average_score_percent: int
    last_reviewed_at: datetime | None


@dataclass
class UserOverview:
    total_stacks: int
    total_cards: int
    total_reviews: int
    correct_answers: int
    incorrect_answers: int
    overall_accuracy: int
    study_streak: int
    cards_by_difficulty: dict[str, int] = field(default_factory=dict)
    recent_stacks: list[StackSummary] = field(default_factory=list)
    most_studied_stacks: list[StackSummary] = field(default_factory=list)


@dataclass
class StudyHistoryEntry:
    """Stacks last studied on one calendar date, with their counters summed."""

    date: date
    stacks_studied: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0


def _summarize(stack: Stack) -> StackSummary:
    return StackSummary(
        stack_id=stack.id,
        title=stack.title,
        total_reviewed=stack.stats.total_reviewed,
        average_score_percent=stack.stats.average_score_percent,
        last_reviewed_at=stack.stats.last_reviewed_at,
    )


class MetricsCalculator:
    """
    Computes derived metrics from cards and stacks.

    Stateless and side-effect free. Calendar dates are taken in the
    calculator's timezone.
    """

    def __init__(self, tz: tzinfo = UTC):
        self.tz = tz

    def enrich(self, card: Card, now: datetime) -> CardMetrics:
        """
        Enrich a card's review state with computed metrics.
        """
        review = card.review
        return CardMetrics(
            card_id=card.id,
            stack_id=card.stack_id,
            front=card.front,
            difficulty=card.difficulty,
            times_reviewed=review.times_reviewed,
            interval_days=review.interval_days,
            ease_factor=review.ease_factor,
            accuracy=review.accuracy,
            mastery_level=review.mastery_level,
            is_due=is_due(card, now),
            days_overdue=self._compute_days_overdue(card, now),
        )

    def _compute_days_overdue(self, card: Card, now: datetime) -> int | None:
        """
        Whole calendar days between the due date and now (negative if not yet due).
        """
        if card.review.next_review_at is None:
            return None
        due_day = self._local_date(card.review.next_review_at)
        return (self._local_date(now) - due_day).days

    def _local_date(self, ts: datetime) -> date:
        if ts.tzinfo is not None:
            ts = ts.astimezone(self.tz)
        return ts.date()

    def study_dates(self, stacks: Iterable[Stack]) -> set[date]:
        """Distinct calendar dates on which any stack was last studied."""
        return dates_from_timestamps((s.stats.last_reviewed_at for s in stacks), self.tz)

    def build_overview(
        self,
        stacks: Sequence[Stack],
        cards: Sequence[Card],
        today: date,
        recent_days: int = RECENT_ACTIVITY_DAYS,
        top_limit: int = TOP_STACKS_LIMIT,
    ) -> UserOverview:
        """
        Roll stack counters and card attributes into a dashboard overview.

        Totals come from stack counters, as the stacks are what the user
        studies; card tallies are only used for the difficulty breakdown.
        """
        total_reviews = sum(s.stats.total_reviewed for s in stacks)
        correct = sum(s.stats.correct_answers for s in stacks)
        incorrect = sum(s.stats.incorrect_answers for s in stacks)

        by_difficulty = Counter(c.difficulty.value for c in cards)

        cutoff = today - timedelta(days=recent_days)
        recent = [
            s
            for s in stacks
            if s.stats.last_reviewed_at is not None
            and self._local_date(s.stats.last_reviewed_at) >= cutoff
        ]
        recent.sort(key=lambda s: s.stats.last_reviewed_at, reverse=True)

        most_studied = sorted(stacks, key=lambda s: s.stats.total_reviewed, reverse=True)

        return UserOverview(
            total_stacks=len(stacks),
            total_cards=len(cards),
            total_reviews=total_reviews,
            correct_answers=correct,
            incorrect_answers=incorrect,
            overall_accuracy=percent(correct, total_reviews),
            study_streak=compute_streak(self.study_dates(stacks), today),
            cards_by_difficulty=dict(by_difficulty),
            recent_stacks=[_summarize(s) for s in recent[:top_limit]],
            most_studied_stacks=[_summarize(s) for s in most_studied[:top_limit]],
        )

    def build_history(
        self,
        stacks: Iterable[Stack],
        today: date,
        days: int,
    ) -> list[StudyHistoryEntry]:
        """
        Group stacks by the date they were last studied, oldest date first.

        Only stacks last studied within `days` days of today are included.
        Counters are each stack's lifetime totals, so a date's numbers reflect
        the stacks whose latest session fell on it.
        """
        start = today - timedelta(days=days)
        by_date: dict[date, StudyHistoryEntry] = {}

        for stack in stacks:
            last = stack.stats.last_reviewed_at
            if last is None:
                continue
            day = self._local_date(last)
            if day < start or day > today:
                continue
            entry = by_date.setdefault(day, StudyHistoryEntry(date=day))
            entry.stacks_studied += 1
            entry.correct_answers += stack.stats.correct_answers
            entry.incorrect_answers += stack.stats.incorrect_answers

        return [by_date[d] for d in sorted(by_date)]
