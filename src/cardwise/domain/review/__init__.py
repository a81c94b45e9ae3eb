# Domain Review Package
from .models import (
    Card,
    CollectionStats,
    Difficulty,
    MasteryLevel,
    ReviewState,
    Stack,
    mastery_for_accuracy,
)
from .ports import ReviewRepository
from .rounding import percent, round_half_up

__all__ = [
    "Card",
    "CollectionStats",
    "Difficulty",
    "MasteryLevel",
    "ReviewState",
    "Stack",
    "mastery_for_accuracy",
    "ReviewRepository",
    "percent",
    "round_half_up",
]
