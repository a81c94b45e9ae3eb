# Application Scheduling Package
from .due_selector import is_due, select_due
from .engine import is_passing, next_ease_factor, record_review, validate_quality

__all__ = [
    "is_due",
    "select_due",
    "is_passing",
    "next_ease_factor",
    "record_review",
    "validate_quality",
]
