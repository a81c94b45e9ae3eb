"""
Study session orchestration.

Runs the two-step review protocol over a repository:
1. record_review on the card, then save the card
2. record_collection_review on its stack, then save the stack

Reviews of the same card are not commutative, so they are serialized with a
per-card lock; stack counters are a read-modify-write and get a per-stack
lock. Different cards and stacks proceed independently.
"""

import asyncio
import logging
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from datetime import datetime

from cardwise.application.scheduling.due_selector import select_due
from cardwise.application.scheduling.engine import is_passing, record_review, validate_quality
from cardwise.application.stats.aggregator import DriftReport, find_drift, record_collection_review
from cardwise.domain.review.models import Card, Stack
from cardwise.domain.review.ports import ReviewRepository

logger = logging.getLogger(__name__)


@dataclass
class ReviewOutcome:
    """Result of submitting one answer."""

    card: Card
    stack: Stack
    was_correct: bool


class KeyedLocks:
    """asyncio locks by key, dropped once no task holds or waits on them."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: Counter[str] = Counter()

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]


class StudyService:
    """
    Application service for study sessions.

    Locks are held per service instance, so every concurrent caller that
    writes the same store must share one StudyService.
    """

    def __init__(self, repo: ReviewRepository, batch_size: int | None = None):
        """
        Args:
            repo: The repository (port) for loading and saving cards and stacks.
            batch_size: Default cap on due cards per session; None for no cap.
        """
        self._repo = repo
        self._batch_size = batch_size
        self._card_locks = KeyedLocks()
        self._stack_locks = KeyedLocks()

    async def get_due_cards(
        self,
        stack_id: str,
        now: datetime,
        limit: int | None = None,
    ) -> list[Card]:
        """
        Return the next study batch for a stack.

        Raises:
            StackNotFoundError: If the stack does not exist.
        """
        await self._repo.get_stack(stack_id)
        cards = await self._repo.list_cards(stack_id)
        due = select_due(cards, now, limit=limit if limit is not None else self._batch_size)
        logger.debug(f"Stack {stack_id}: {len(due)}/{len(cards)} cards due")
        return due

    async def submit_review(self, card_id: str, quality: int, now: datetime) -> ReviewOutcome:
        """
        Record an answer for a card and fold it into its stack's counters.

        The card is saved before the stack is updated. If the stack step
        fails, the card stays reviewed and the stack totals fall behind;
        find_drift reports the gap.

        Raises:
            InvalidQualityError: Before anything is loaded, if quality is not 0..5.
            CardNotFoundError: If the card does not exist.
        """
        validate_quality(quality)
        was_correct = is_passing(quality)

        async with self._card_locks.hold(card_id):
            card = await self._repo.get_card(card_id)
            card = replace(card, review=record_review(card.review, quality, now))
            await self._repo.save_card(card)

        stack = await self._record_stack_review(card, was_correct, now)

        logger.info(
            f"Reviewed {card_id} q={quality}: interval={card.review.interval_days}d "
            f"ease={card.review.ease_factor:.2f}"
        )
        return ReviewOutcome(card=card, stack=stack, was_correct=was_correct)

    async def _record_stack_review(self, card: Card, was_correct: bool, now: datetime) -> Stack:
        async with self._stack_locks.hold(card.stack_id):
            stack = await self._repo.get_stack_for_card(card.id)
            stack = replace(stack, stats=record_collection_review(stack.stats, was_correct, now))
            await self._repo.save_stack(stack)
        return stack

    async def check_drift(self, stack_id: str) -> DriftReport:
        """Compare a stack's stored counters with its cards' tallies."""
        stack = await self._repo.get_stack(stack_id)
        cards = await self._repo.list_cards(stack_id)
        report = find_drift(stack.stats, cards)
        if report.has_drift:
            logger.warning(
                f"Stack {stack_id} counters drifted: total {report.total_delta:+d}, "
                f"correct {report.correct_delta:+d}, incorrect {report.incorrect_delta:+d}"
            )
        return report
