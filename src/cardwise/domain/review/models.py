"""
Domain models for spaced-repetition review.

These are pure data structures with no I/O or external dependencies.
ReviewState and CollectionStats are immutable values; the scheduling and
aggregation functions return new instances instead of mutating them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from cardwise.domain.constants import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_INTERVAL_DAYS,
    GOOD_ACCURACY,
    LEARNING_ACCURACY,
    MASTERED_ACCURACY,
    MAX_CARD_TEXT_LEN,
    MAX_CATEGORY_LEN,
    MAX_STACK_DESCRIPTION_LEN,
    MAX_STACK_TITLE_LEN,
    MAX_TAG_LEN,
    MIN_EASE_FACTOR,
)
from cardwise.domain.exceptions import ValidationError

from .rounding import percent


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class MasteryLevel(str, Enum):
    MASTERED = "mastered"
    GOOD = "good"
    LEARNING = "learning"
    STRUGGLING = "struggling"


def mastery_for_accuracy(accuracy: int) -> MasteryLevel:
    if accuracy >= MASTERED_ACCURACY:
        return MasteryLevel.MASTERED
    if accuracy >= GOOD_ACCURACY:
        return MasteryLevel.GOOD
    if accuracy >= LEARNING_ACCURACY:
        return MasteryLevel.LEARNING
    return MasteryLevel.STRUGGLING


@dataclass(frozen=True)
class ReviewState:
    """
    Spaced-repetition state of a single card.

    Attributes:
        times_reviewed: Total reviews, passed or failed.
        correct_count: Reviews with quality >= 3.
        incorrect_count: Reviews with quality < 3.
        last_reviewed_at: When the card was last answered.
        next_review_at: When the card is next due (last_reviewed_at + interval_days).
        interval_days: Current interval, never below 1.
        ease_factor: SM-2 multiplier, never below 1.3.
    """

    times_reviewed: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    last_reviewed_at: datetime | None = None
    next_review_at: datetime | None = None
    interval_days: int = DEFAULT_INTERVAL_DAYS
    ease_factor: float = DEFAULT_EASE_FACTOR

    def __post_init__(self) -> None:
        if min(self.times_reviewed, self.correct_count, self.incorrect_count) < 0:
            raise ValidationError("Review counters cannot be negative")
        if self.times_reviewed != self.correct_count + self.incorrect_count:
            raise ValidationError(
                "times_reviewed must equal correct_count + incorrect_count",
                field="times_reviewed",
            )
        if self.interval_days < 1:
            raise ValidationError("interval_days must be at least 1", field="interval_days")
        if self.ease_factor < MIN_EASE_FACTOR:
            raise ValidationError(
                f"ease_factor cannot be below {MIN_EASE_FACTOR}", field="ease_factor"
            )

    @property
    def accuracy(self) -> int:
        """Percentage of correct answers, 0 for a card never reviewed."""
        return percent(self.correct_count, self.times_reviewed)

    @property
    def mastery_level(self) -> MasteryLevel:
        return mastery_for_accuracy(self.accuracy)


@dataclass(frozen=True)
class CollectionStats:
    """
    Answer counters of a stack.

    Derived from card reviews through record_collection_review; not
    independently authoritative.
    """

    total_reviewed: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0
    last_reviewed_at: datetime | None = None
    average_score_percent: int = 0

    def __post_init__(self) -> None:
        if min(self.total_reviewed, self.correct_answers, self.incorrect_answers) < 0:
            raise ValidationError("Stack counters cannot be negative")
        if not 0 <= self.average_score_percent <= 100:
            raise ValidationError(
                "average_score_percent must be within 0..100", field="average_score_percent"
            )

    @property
    def accuracy(self) -> int:
        return percent(self.correct_answers, self.total_reviewed)


def _require_text(value: str, field_name: str, max_len: int) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field_name.capitalize()} cannot be empty", field=field_name)
    if len(text) > max_len:
        raise ValidationError(
            f"{field_name.capitalize()} cannot exceed {max_len} characters", field=field_name
        )
    return text


@dataclass
class Card:
    """
    A flashcard: content plus exactly one ReviewState.

    Business Rules:
    - Front and back cannot be empty or longer than 1000 characters
    - The review state is replaced only with the result of record_review
    """

    id: str
    stack_id: str
    front: str
    back: str
    created_at: datetime
    difficulty: Difficulty = Difficulty.MEDIUM
    review: ReviewState = field(default_factory=ReviewState)

    def __post_init__(self) -> None:
        self.front = _require_text(self.front, "front", MAX_CARD_TEXT_LEN)
        self.back = _require_text(self.back, "back", MAX_CARD_TEXT_LEN)
        self.difficulty = Difficulty(self.difficulty)

    @classmethod
    def create(
        cls,
        id: str,
        stack_id: str,
        front: str,
        back: str,
        created_at: datetime,
        difficulty: Difficulty | str = Difficulty.MEDIUM,
    ) -> "Card":
        """Create a new card with a fresh review state."""
        return cls(
            id=id,
            stack_id=stack_id,
            front=front,
            back=back,
            created_at=created_at,
            difficulty=Difficulty(difficulty),
        )


@dataclass
class Stack:
    """
    A collection of cards with aggregate answer counters.

    card_ids keeps insertion order; a card belongs to exactly one stack.
    """

    id: str
    title: str
    created_at: datetime
    category: str = "General"
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    card_ids: list[str] = field(default_factory=list)
    stats: CollectionStats = field(default_factory=CollectionStats)

    def __post_init__(self) -> None:
        self.title = _require_text(self.title, "title", MAX_STACK_TITLE_LEN)
        self.category = _require_text(self.category, "category", MAX_CATEGORY_LEN)
        if self.description is not None:
            self.description = self.description.strip()
            if len(self.description) > MAX_STACK_DESCRIPTION_LEN:
                raise ValidationError(
                    f"Description cannot exceed {MAX_STACK_DESCRIPTION_LEN} characters",
                    field="description",
                )
        self.tags = [_require_text(t, "tag", MAX_TAG_LEN) for t in self.tags]

    @property
    def card_count(self) -> int:
        return len(self.card_ids)

    def add_card(self, card_id: str) -> None:
        if card_id not in self.card_ids:
            self.card_ids.append(card_id)
