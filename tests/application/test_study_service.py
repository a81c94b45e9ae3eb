import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from cardwise.application.deck_service import DeckService
from cardwise.application.study_service import KeyedLocks, StudyService
from cardwise.domain.exceptions import (
    CardNotFoundError,
    InvalidQualityError,
    StackNotFoundError,
    ValidationError,
)
from cardwise.infrastructure.adapters.yaml_store import YamlDeckRepository


async def seed(repo, now, n_cards=3):
    decks = DeckService(repo)
    stack = await decks.create_stack("Spanish verbs", now - timedelta(days=30), category="Language")
    cards = []
    for i in range(n_cards):
        cards.append(
            await decks.add_card(stack.id, f"verb {i}", f"answer {i}", now - timedelta(days=30 - i))
        )
    return stack, cards


@pytest.mark.asyncio
async def test_submit_review_updates_card_and_stack(yaml_repo, now):
    stack, cards = await seed(yaml_repo, now)
    service = StudyService(yaml_repo)

    outcome = await service.submit_review(cards[0].id, 5, now)

    assert outcome.was_correct is True
    assert outcome.card.review.times_reviewed == 1
    assert outcome.card.review.next_review_at == now + timedelta(days=1)
    assert outcome.stack.id == stack.id
    assert outcome.stack.stats.total_reviewed == 1
    assert outcome.stack.stats.correct_answers == 1
    assert outcome.stack.stats.average_score_percent == 100


@pytest.mark.asyncio
async def test_failed_review_is_forwarded_as_incorrect(yaml_repo, now):
    _, cards = await seed(yaml_repo, now)
    service = StudyService(yaml_repo)

    outcome = await service.submit_review(cards[1].id, 1, now)

    assert outcome.was_correct is False
    assert outcome.stack.stats.incorrect_answers == 1
    assert outcome.stack.stats.average_score_percent == 0


@pytest.mark.asyncio
async def test_persisted_state_matches_returned_state(tmp_path, now):
    repo = YamlDeckRepository(tmp_path / "deck.yaml")
    _, cards = await seed(repo, now)
    service = StudyService(repo)

    outcome = None
    for i, q in enumerate([5, 4, 3]):
        outcome = await service.submit_review(cards[0].id, q, now + timedelta(days=i))

    reloaded = YamlDeckRepository(tmp_path / "deck.yaml")
    card = await reloaded.get_card(cards[0].id)
    stack = await reloaded.get_stack(cards[0].stack_id)

    assert card.review == outcome.card.review
    assert stack.stats == outcome.stack.stats


@pytest.mark.asyncio
async def test_due_cards_shrink_after_review(yaml_repo, now):
    stack, cards = await seed(yaml_repo, now)
    service = StudyService(yaml_repo)

    before = await service.get_due_cards(stack.id, now)
    await service.submit_review(cards[0].id, 4, now)
    after = await service.get_due_cards(stack.id, now)

    assert [c.id for c in before] == [c.id for c in cards]
    assert [c.id for c in after] == [cards[1].id, cards[2].id]


@pytest.mark.asyncio
async def test_due_cards_respects_batch_size(yaml_repo, now):
    stack, cards = await seed(yaml_repo, now, n_cards=4)

    capped = StudyService(yaml_repo, batch_size=2)

    assert len(await capped.get_due_cards(stack.id, now)) == 2
    assert len(await capped.get_due_cards(stack.id, now, limit=3)) == 3


@pytest.mark.asyncio
async def test_due_cards_unknown_stack(yaml_repo, now):
    with pytest.raises(StackNotFoundError):
        await StudyService(yaml_repo).get_due_cards("stack_missing", now)


@pytest.mark.asyncio
async def test_invalid_quality_rejected_before_loading(now):
    repo = AsyncMock()
    service = StudyService(repo)

    with pytest.raises(InvalidQualityError):
        await service.submit_review("card_1", 6, now)

    repo.get_card.assert_not_awaited()
    repo.save_card.assert_not_awaited()
    repo.save_stack.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_card(yaml_repo, now):
    await seed(yaml_repo, now)

    service = StudyService(yaml_repo)

    with pytest.raises(CardNotFoundError):
        await service.submit_review("card_missing", 4, now)
    assert len(service._card_locks) == 0


@pytest.mark.asyncio
async def test_concurrent_reviews_keep_counters_consistent(yaml_repo, now):
    stack, cards = await seed(yaml_repo, now)
    service = StudyService(yaml_repo)

    await asyncio.gather(
        *(service.submit_review(c.id, q, now) for c in cards for q in (5, 2))
    )

    report = await service.check_drift(stack.id)
    stored = await yaml_repo.get_stack(stack.id)

    assert stored.stats.total_reviewed == 6
    assert stored.stats.correct_answers == 3
    assert not report.has_drift
    for card in cards:
        assert (await yaml_repo.get_card(card.id)).review.times_reviewed == 2
    assert len(service._card_locks) == 0
    assert len(service._stack_locks) == 0


@pytest.mark.asyncio
async def test_deck_service_rejects_empty_front(yaml_repo, now):
    stack, _ = await seed(yaml_repo, now, n_cards=0)

    with pytest.raises(ValidationError):
        await DeckService(yaml_repo).add_card(stack.id, "  ", "back", now)


@pytest.mark.asyncio
async def test_deck_service_unknown_stack(yaml_repo, now):
    with pytest.raises(StackNotFoundError):
        await DeckService(yaml_repo).add_card("stack_missing", "front", "back", now)


@pytest.mark.asyncio
async def test_keyed_locks_serialize_per_key_and_are_released():
    locks = KeyedLocks()
    order = []

    async def worker(key, name):
        async with locks.hold(key):
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    await asyncio.gather(worker("card_1", "a"), worker("card_1", "b"), worker("card_2", "c"))

    assert order.index("a-out") < order.index("b-in")
    assert len(locks) == 0
