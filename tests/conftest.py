import os
from datetime import UTC, datetime, timedelta

import pytest

from cardwise.domain.review.models import Card, ReviewState
from cardwise.infrastructure.adapters.yaml_store import YamlDeckRepository


@pytest.fixture
def now():
    """A fixed, timezone-aware review time."""
    return datetime(2026, 3, 10, 9, 30, tzinfo=UTC)


@pytest.fixture
def make_card(now):
    """Factory for cards with an arbitrary review state."""
    counter = {"n": 0}

    def _make(
        review: ReviewState | None = None,
        created_at: datetime | None = None,
        stack_id: str = "stack_1",
    ) -> Card:
        counter["n"] += 1
        return Card(
            id=f"card_{counter['n']}",
            stack_id=stack_id,
            front=f"Question {counter['n']}",
            back=f"Answer {counter['n']}",
            created_at=created_at or now - timedelta(days=30),
            review=review or ReviewState(),
        )

    return _make


@pytest.fixture
def yaml_repo(tmp_path):
    return YamlDeckRepository(tmp_path / "deck.yaml")


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config files and CARDWISE_* overrides from the developer machine
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("CARDWISE_"):
            monkeypatch.delenv(key)
    return home
