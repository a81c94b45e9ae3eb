"""
Repository Factory
Centralizes the logic for building the storage adapter and services from config.
"""

from cardwise.application.config import AppConfig
from cardwise.application.deck_service import DeckService
from cardwise.application.stats.metrics_calculator import MetricsCalculator
from cardwise.application.stats.service import StudyStatsService
from cardwise.application.study_service import StudyService
from cardwise.domain.review.ports import ReviewRepository
from cardwise.infrastructure.adapters.yaml_store import YamlDeckRepository


def get_repository(config: AppConfig) -> ReviewRepository:
    """
    Returns the ReviewRepository implementation for the configured data file.
    """
    return YamlDeckRepository(config.data_file)


def get_study_service(config: AppConfig, repo: ReviewRepository) -> StudyService:
    return StudyService(repo, batch_size=config.session_batch_size)


def get_stats_service(config: AppConfig, repo: ReviewRepository) -> StudyStatsService:
    return StudyStatsService(
        repo,
        calculator=MetricsCalculator(tz=config.tz),
        recent_days=config.recent_activity_days,
    )


def get_deck_service(repo: ReviewRepository) -> DeckService:
    return DeckService(repo)
