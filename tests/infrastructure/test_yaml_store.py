from datetime import UTC, datetime, timedelta

import pytest
import yaml
from typer.testing import CliRunner

from cardwise.application.scheduling.engine import record_review
from cardwise.domain.exceptions import CardNotFoundError, StackNotFoundError, StoreError
from cardwise.domain.review.models import Card, Stack
from cardwise.infrastructure.adapters.yaml_store import (
    YamlDeckRepository,
    card_from_dict,
    card_to_dict,
)
from cardwise.interface.cli import app


@pytest.fixture
def stack(now):
    return Stack(id="stack_1", title="Biology", created_at=now, category="Science", tags=["cells"])


@pytest.mark.asyncio
async def test_missing_file_is_an_empty_store(yaml_repo):
    assert await yaml_repo.list_stacks() == []
    assert not yaml_repo.path.exists()


@pytest.mark.asyncio
async def test_save_and_reload(tmp_path, stack, make_card, now):
    repo = YamlDeckRepository(tmp_path / "nested" / "deck.yaml")
    card = make_card()
    card.review = record_review(card.review, 4, now)
    stack.add_card(card.id)
    await repo.save_card(card)
    await repo.save_stack(stack)

    reloaded = YamlDeckRepository(tmp_path / "nested" / "deck.yaml")
    loaded_stack = await reloaded.get_stack("stack_1")
    loaded_card = await reloaded.get_card(card.id)

    assert loaded_stack.title == "Biology"
    assert loaded_stack.tags == ["cells"]
    assert loaded_stack.card_ids == [card.id]
    assert loaded_card.review == card.review
    assert loaded_card.created_at == card.created_at
    assert await reloaded.list_cards("stack_1") == [loaded_card]


@pytest.mark.asyncio
async def test_stack_for_card(yaml_repo, stack, make_card):
    card = make_card()
    stack.add_card(card.id)
    await yaml_repo.save_stack(stack)
    await yaml_repo.save_card(card)

    assert (await yaml_repo.get_stack_for_card(card.id)).id == "stack_1"


@pytest.mark.asyncio
async def test_not_found_errors(yaml_repo):
    with pytest.raises(CardNotFoundError):
        await yaml_repo.get_card("card_x")
    with pytest.raises(StackNotFoundError):
        await yaml_repo.get_stack("stack_x")
    with pytest.raises(StackNotFoundError):
        await yaml_repo.list_cards("stack_x")


@pytest.mark.asyncio
async def test_corrupt_yaml_raises_store_error(tmp_path):
    path = tmp_path / "deck.yaml"
    path.write_text("stacks: [unclosed\n", encoding="utf-8")

    with pytest.raises(StoreError):
        await YamlDeckRepository(path).list_stacks()


@pytest.mark.asyncio
async def test_invalid_record_raises_store_error(tmp_path):
    path = tmp_path / "deck.yaml"
    path.write_text(
        yaml.safe_dump({"stacks": [{"id": "s", "title": "", "created_at": "2026-01-01T00:00:00"}]}),
        encoding="utf-8",
    )

    with pytest.raises(StoreError):
        await YamlDeckRepository(path).list_stacks()


@pytest.mark.asyncio
async def test_file_written_as_plain_yaml(yaml_repo, stack):
    await yaml_repo.save_stack(stack)

    doc = yaml.safe_load(yaml_repo.path.read_text(encoding="utf-8"))

    assert doc["version"] == 1
    assert doc["stacks"][0]["title"] == "Biology"
    assert isinstance(doc["stacks"][0]["created_at"], str)
    assert doc["cards"] == []


def test_card_without_review_gets_defaults(now):
    card = card_from_dict(
        {
            "id": "c1",
            "stack_id": "s1",
            "front": "Q",
            "back": "A",
            "created_at": now.isoformat(),
        }
    )

    assert card.review.times_reviewed == 0
    assert card.review.ease_factor == 2.5
    assert card.review.next_review_at is None


def test_card_dict_round_trip(make_card, now):
    card = make_card()
    card.review = record_review(card.review, 5, now - timedelta(days=1))

    assert card_from_dict(card_to_dict(card)) == card


def test_card_dict_uses_plain_types(now):
    card = Card.create(id="c1", stack_id="s1", front="Q", back="A", created_at=now)

    data = card_to_dict(card)

    assert data["difficulty"] == "medium"
    assert data["review"]["last_reviewed_at"] is None


NAIVE_STORE = """\
version: 1
stacks:
- id: stack_1
  title: Biology
  created_at: 2026-01-01 08:00:00
  card_ids: [card_1]
  stats:
    total_reviewed: 1
    correct_answers: 1
    last_reviewed_at: '2026-03-01T09:00:00'
    average_score_percent: 100
cards:
- id: card_1
  stack_id: stack_1
  front: What is ATP?
  back: Energy
  created_at: 2026-01-01 08:00:00
  review:
    times_reviewed: 1
    correct_count: 1
    last_reviewed_at: '2026-03-01T09:00:00'
    next_review_at: 2026-03-02 09:00:00
    interval_days: 1
"""


@pytest.mark.asyncio
async def test_timestamps_without_offset_load_as_utc(tmp_path, now):
    path = tmp_path / "deck.yaml"
    path.write_text(NAIVE_STORE, encoding="utf-8")
    repo = YamlDeckRepository(path)

    card = await repo.get_card("card_1")
    stack = await repo.get_stack("stack_1")

    assert card.created_at == datetime(2026, 1, 1, 8, tzinfo=UTC)
    assert card.review.next_review_at == datetime(2026, 3, 2, 9, tzinfo=UTC)
    assert stack.stats.last_reviewed_at.tzinfo is not None
    assert card.review.next_review_at <= now


def test_study_due_on_store_without_offsets(mock_home):
    path = mock_home / "deck.yaml"
    path.write_text(NAIVE_STORE, encoding="utf-8")

    result = CliRunner().invoke(app, ["--data-file", str(path), "study", "due", "stack_1"])

    assert result.exit_code == 0, result.output
    assert "Due cards: 1" in result.stdout
    assert "card_1" in result.stdout
