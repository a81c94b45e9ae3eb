"""
Domain exceptions for cardwise.

The scheduling core raises these for precondition violations; the
services and the CLI translate them into user-facing messages.
"""


class CardwiseError(Exception):
    """Base exception for all cardwise errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidQualityError(CardwiseError, ValueError):
    """
    Raised when a quality score falls outside 0..5.

    This is a programming error: callers are expected to reject bad input
    before it reaches the scheduling engine.
    """

    def __init__(self, quality: object) -> None:
        self.quality = quality
        super().__init__(f"Quality must be an integer between 0 and 5, got {quality!r}")


class ValidationError(CardwiseError, ValueError):
    """Raised when card or stack content breaks a content rule."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class NotFoundError(CardwiseError):
    """Resource not found."""


class CardNotFoundError(NotFoundError):
    def __init__(self, card_id: str) -> None:
        self.card_id = card_id
        super().__init__(f"Card with id {card_id} not found")


class StackNotFoundError(NotFoundError):
    def __init__(self, stack_id: str) -> None:
        self.stack_id = stack_id
        super().__init__(f"Stack with id {stack_id} not found")


class StoreError(CardwiseError):
    """Raised when the backing store cannot be read or written."""
