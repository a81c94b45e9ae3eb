"""Creating stacks and adding cards to them."""

import logging
from datetime import datetime

from cardwise.application.id_service import generate_card_id, generate_stack_id
from cardwise.domain.review.models import Card, Difficulty, Stack
from cardwise.domain.review.ports import ReviewRepository

logger = logging.getLogger(__name__)


class DeckService:
    def __init__(self, repo: ReviewRepository):
        self._repo = repo

    async def create_stack(
        self,
        title: str,
        now: datetime,
        category: str = "General",
        description: str | None = None,
        tags: list[str] | None = None,
    ) -> Stack:
        stack = Stack(
            id=generate_stack_id(),
            title=title,
            created_at=now,
            category=category,
            description=description,
            tags=list(tags or []),
        )
        await self._repo.save_stack(stack)
        logger.info(f"Created stack {stack.id} ({stack.title})")
        return stack

    async def add_card(
        self,
        stack_id: str,
        front: str,
        back: str,
        now: datetime,
        difficulty: Difficulty | str = Difficulty.MEDIUM,
    ) -> Card:
        """
        Create a card with a fresh review state and append it to the stack.

        Raises:
            StackNotFoundError: If the stack does not exist.
        """
        stack = await self._repo.get_stack(stack_id)
        card = Card.create(
            id=generate_card_id(),
            stack_id=stack.id,
            front=front,
            back=back,
            created_at=now,
            difficulty=difficulty,
        )
        await self._repo.save_card(card)
        stack.add_card(card.id)
        await self._repo.save_stack(stack)
        logger.info(f"Added card {card.id} to stack {stack.id}")
        return card

    async def list_stacks(self) -> list[Stack]:
        return await self._repo.list_stacks()
