"""
YAML Deck Repository: infrastructure adapter for a single-file store.

Implements ReviewRepository by keeping every stack and card in one YAML
document. The whole file is read on first access and rewritten on each save.
"""

import logging
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml  # type: ignore

from cardwise.domain.exceptions import CardNotFoundError, StackNotFoundError, StoreError
from cardwise.domain.review.models import Card, CollectionStats, ReviewState, Stack
from cardwise.domain.review.ports import ReviewRepository

logger = logging.getLogger(__name__)

STORE_VERSION = 1


# ---------- Serialization ----------


def _dump_ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _load_ts(value: Any) -> datetime | None:
    """Parse a stored timestamp; values without an offset are taken as UTC."""
    if value is None or value == "":
        return None
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(str(value))
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def review_to_dict(state: ReviewState) -> dict[str, Any]:
    return {
        "times_reviewed": state.times_reviewed,
        "correct_count": state.correct_count,
        "incorrect_count": state.incorrect_count,
        "last_reviewed_at": _dump_ts(state.last_reviewed_at),
        "next_review_at": _dump_ts(state.next_review_at),
        "interval_days": state.interval_days,
        "ease_factor": state.ease_factor,
    }


def review_from_dict(data: dict[str, Any] | None) -> ReviewState:
    if not data:
        return ReviewState()
    defaults = ReviewState()
    return ReviewState(
        times_reviewed=int(data.get("times_reviewed", 0)),
        correct_count=int(data.get("correct_count", 0)),
        incorrect_count=int(data.get("incorrect_count", 0)),
        last_reviewed_at=_load_ts(data.get("last_reviewed_at")),
        next_review_at=_load_ts(data.get("next_review_at")),
        interval_days=int(data.get("interval_days", defaults.interval_days)),
        ease_factor=float(data.get("ease_factor", defaults.ease_factor)),
    )


def stats_to_dict(stats: CollectionStats) -> dict[str, Any]:
    return {
        "total_reviewed": stats.total_reviewed,
        "correct_answers": stats.correct_answers,
        "incorrect_answers": stats.incorrect_answers,
        "last_reviewed_at": _dump_ts(stats.last_reviewed_at),
        "average_score_percent": stats.average_score_percent,
    }


def stats_from_dict(data: dict[str, Any] | None) -> CollectionStats:
    if not data:
        return CollectionStats()
    return CollectionStats(
        total_reviewed=int(data.get("total_reviewed", 0)),
        correct_answers=int(data.get("correct_answers", 0)),
        incorrect_answers=int(data.get("incorrect_answers", 0)),
        last_reviewed_at=_load_ts(data.get("last_reviewed_at")),
        average_score_percent=int(data.get("average_score_percent", 0)),
    )


def card_to_dict(card: Card) -> dict[str, Any]:
    return {
        "id": card.id,
        "stack_id": card.stack_id,
        "front": card.front,
        "back": card.back,
        "difficulty": card.difficulty.value,
        "created_at": _dump_ts(card.created_at),
        "review": review_to_dict(card.review),
    }


def card_from_dict(data: dict[str, Any]) -> Card:
    return Card(
        id=str(data["id"]),
        stack_id=str(data["stack_id"]),
        front=data["front"],
        back=data["back"],
        difficulty=data.get("difficulty", "medium"),
        created_at=_load_ts(data["created_at"]),
        review=review_from_dict(data.get("review")),
    )


def stack_to_dict(stack: Stack) -> dict[str, Any]:
    return {
        "id": stack.id,
        "title": stack.title,
        "category": stack.category,
        "description": stack.description,
        "tags": list(stack.tags),
        "created_at": _dump_ts(stack.created_at),
        "card_ids": list(stack.card_ids),
        "stats": stats_to_dict(stack.stats),
    }


def stack_from_dict(data: dict[str, Any]) -> Stack:
    return Stack(
        id=str(data["id"]),
        title=data["title"],
        category=data.get("category") or "General",
        description=data.get("description"),
        tags=list(data.get("tags") or []),
        created_at=_load_ts(data["created_at"]),
        card_ids=[str(c) for c in data.get("card_ids") or []],
        stats=stats_from_dict(data.get("stats")),
    )


# ---------- Repository ----------


class YamlDeckRepository(ReviewRepository):
    """
    Stores stacks and cards in a YAML file.

    Not safe for concurrent writers across processes; within one process,
    StudyService serializes writes per card and per stack.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._stacks: dict[str, Stack] | None = None
        self._cards: dict[str, Card] = {}

    def _load(self) -> dict[str, Stack]:
        if self._stacks is not None:
            return self._stacks

        self._stacks = {}
        self._cards = {}
        if not self.path.exists():
            logger.debug(f"No store at {self.path}, starting empty")
            return self._stacks

        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            self._stacks = None
            raise StoreError(f"Could not parse {self.path}: {e}") from e

        if not isinstance(raw, dict):
            self._stacks = None
            raise StoreError(f"Unexpected top-level structure in {self.path}")

        try:
            for item in raw.get("stacks") or []:
                stack = stack_from_dict(item)
                self._stacks[stack.id] = stack
            for item in raw.get("cards") or []:
                card = card_from_dict(item)
                self._cards[card.id] = card
        except (KeyError, TypeError, ValueError) as e:
            self._stacks = None
            self._cards = {}
            raise StoreError(f"Invalid record in {self.path}: {e}") from e

        logger.debug(
            f"Loaded {len(self._stacks)} stacks and {len(self._cards)} cards from {self.path}"
        )
        return self._stacks

    def _flush(self) -> None:
        stacks = self._load()
        doc = {
            "version": STORE_VERSION,
            "stacks": [stack_to_dict(s) for s in stacks.values()],
            "cards": [card_to_dict(c) for c in self._cards.values()],
        }
        text = yaml.safe_dump(doc, sort_keys=False, allow_unicode=True)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Replace atomically through a sibling temp file
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, self.path)
        except OSError as e:
            Path(tmp).unlink(missing_ok=True)
            raise StoreError(f"Could not write {self.path}: {e}") from e

    async def get_card(self, card_id: str) -> Card:
        self._load()
        card = self._cards.get(card_id)
        if card is None:
            raise CardNotFoundError(card_id)
        return card

    async def get_stack(self, stack_id: str) -> Stack:
        stack = self._load().get(stack_id)
        if stack is None:
            raise StackNotFoundError(stack_id)
        return stack

    async def get_stack_for_card(self, card_id: str) -> Stack:
        card = await self.get_card(card_id)
        return await self.get_stack(card.stack_id)

    async def list_cards(self, stack_id: str) -> list[Card]:
        stack = await self.get_stack(stack_id)
        return [self._cards[cid] for cid in stack.card_ids if cid in self._cards]

    async def list_stacks(self) -> list[Stack]:
        return list(self._load().values())

    async def save_card(self, card: Card) -> None:
        self._load()
        self._cards[card.id] = card
        self._flush()

    async def save_stack(self, stack: Stack) -> None:
        self._load()[stack.id] = stack
        self._flush()
