"""
Study Stats Service: application layer orchestrator.

Coordinates loading stacks and cards from the repository and turning them
into reports with the metrics calculator.
"""

import logging
from datetime import date, datetime

from cardwise.domain.constants import DEFAULT_HISTORY_DAYS, RECENT_ACTIVITY_DAYS
from cardwise.domain.review.models import Card
from cardwise.domain.review.ports import ReviewRepository

from .metrics_calculator import CardMetrics, MetricsCalculator, StudyHistoryEntry, UserOverview
from .streak import compute_streak

logger = logging.getLogger(__name__)


class StudyStatsService:
    """
    Application service for study reports.

    Depends on the ReviewRepository abstraction, not on a concrete store.
    """

    def __init__(
        self,
        repo: ReviewRepository,
        calculator: MetricsCalculator | None = None,
        recent_days: int = RECENT_ACTIVITY_DAYS,
    ):
        """
        Args:
            repo: The repository (port) for loading stacks and cards.
            calculator: Optional custom calculator; uses a UTC one if not provided.
            recent_days: Window for the "recent stacks" list.
        """
        self._repo = repo
        self._calc = calculator or MetricsCalculator()
        self._recent_days = recent_days

    async def get_overview(self, today: date) -> UserOverview:
        stacks = await self._repo.list_stacks()
        cards: list[Card] = []
        for stack in stacks:
            cards.extend(await self._repo.list_cards(stack.id))

        logger.debug(f"Building overview for {len(stacks)} stacks, {len(cards)} cards")
        return self._calc.build_overview(stacks, cards, today, recent_days=self._recent_days)

    async def get_streak(self, today: date) -> int:
        """
        Streak over the last-studied dates of every stack.
        """
        stacks = await self._repo.list_stacks()
        return compute_streak(self._calc.study_dates(stacks), today)

    async def get_study_history(
        self,
        today: date,
        days: int = DEFAULT_HISTORY_DAYS,
    ) -> list[StudyHistoryEntry]:
        if days <= 0:
            raise ValueError("days must be positive")
        stacks = await self._repo.list_stacks()
        return self._calc.build_history(stacks, today, days)

    async def get_card_metrics(self, stack_id: str, now: datetime) -> list[CardMetrics]:
        """
        Accuracy, mastery and due status for every card in a stack.

        Raises:
            StackNotFoundError: If the stack does not exist.
        """
        cards = await self._repo.list_cards(stack_id)
        return [self._calc.enrich(card, now) for card in cards]
