# Application Stats Package
from .aggregator import (
    DriftReport,
    find_drift,
    recompute_collection_stats,
    record_collection_review,
)
from .metrics_calculator import (
    CardMetrics,
    MetricsCalculator,
    StackSummary,
    StudyHistoryEntry,
    UserOverview,
)
from .service import StudyStatsService
from .streak import compute_streak, dates_from_timestamps

__all__ = [
    "DriftReport",
    "find_drift",
    "recompute_collection_stats",
    "record_collection_review",
    "CardMetrics",
    "MetricsCalculator",
    "StackSummary",
    "StudyHistoryEntry",
    "UserOverview",
    "StudyStatsService",
    "compute_streak",
    "dates_from_timestamps",
]
