"""
Ports (interfaces) for loading and saving review data.

These define the contract that storage adapters must implement.
Application services depend on these abstractions, not concrete
implementations.
"""

from abc import ABC, abstractmethod

from .models import Card, Stack


class ReviewRepository(ABC):
    """
    Port for card and stack persistence.

    Implementations:
        - YamlDeckRepository: Stores stacks and cards in a single YAML file.
    """

    @abstractmethod
    async def get_card(self, card_id: str) -> Card:
        """
        Load a card with its current review state.

        Raises:
            CardNotFoundError: If no card has this id.
        """
        pass

    @abstractmethod
    async def get_stack(self, stack_id: str) -> Stack:
        """
        Raises:
            StackNotFoundError: If no stack has this id.
        """
        pass

    @abstractmethod
    async def get_stack_for_card(self, card_id: str) -> Stack:
        """Load the stack that owns the given card."""
        pass

    @abstractmethod
    async def list_cards(self, stack_id: str) -> list[Card]:
        """Return the cards of a stack in stack order."""
        pass

    @abstractmethod
    async def list_stacks(self) -> list[Stack]:
        pass

    @abstractmethod
    async def save_card(self, card: Card) -> None:
        pass

    @abstractmethod
    async def save_stack(self, stack: Stack) -> None:
        pass
