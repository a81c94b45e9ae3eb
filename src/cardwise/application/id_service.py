"""Stable identifiers for stacks and cards."""

from ulid import ULID


def generate_stack_id() -> str:
    """Generate a sortable stack ID using ULID."""
    return f"stack_{ULID()}"


def generate_card_id() -> str:
    """Generate a sortable card ID using ULID."""
    return f"card_{ULID()}"
