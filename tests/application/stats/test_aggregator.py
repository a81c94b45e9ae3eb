from datetime import timedelta

from cardwise.application.scheduling.engine import record_review
from cardwise.application.stats.aggregator import (
    find_drift,
    recompute_collection_stats,
    record_collection_review,
)
from cardwise.domain.review.models import CollectionStats


def test_correct_answer_updates_counters(now):
    stats = record_collection_review(CollectionStats(), True, now)

    assert stats.total_reviewed == 1
    assert stats.correct_answers == 1
    assert stats.incorrect_answers == 0
    assert stats.last_reviewed_at == now
    assert stats.average_score_percent == 100


def test_incorrect_answer_updates_counters(now):
    stats = record_collection_review(CollectionStats(), False, now)

    assert stats.incorrect_answers == 1
    assert stats.average_score_percent == 0


def test_average_score_rounds_half_up(now):
    stats = CollectionStats()
    for was_correct in [True] + [False] * 7:
        stats = record_collection_review(stats, was_correct, now)

    # 1 / 8 = 12.5%
    assert stats.average_score_percent == 13


def test_average_score_two_thirds(now):
    stats = CollectionStats()
    for was_correct in (True, True, False):
        stats = record_collection_review(stats, was_correct, now)

    assert stats.average_score_percent == 67


def test_input_stats_unchanged(now):
    original = CollectionStats(total_reviewed=2, correct_answers=1, incorrect_answers=1)

    record_collection_review(original, True, now)

    assert original.total_reviewed == 2


def test_empty_stats_accuracy_is_zero():
    assert CollectionStats().accuracy == 0
    assert CollectionStats().average_score_percent == 0


def test_recompute_from_cards(make_card, now):
    a = make_card()
    b = make_card()
    a.review = record_review(a.review, 5, now - timedelta(days=2))
    a.review = record_review(a.review, 1, now - timedelta(days=1))
    b.review = record_review(b.review, 4, now)

    stats = recompute_collection_stats([a, b, make_card()])

    assert stats.total_reviewed == 3
    assert stats.correct_answers == 2
    assert stats.incorrect_answers == 1
    assert stats.last_reviewed_at == now
    assert stats.average_score_percent == 67


def test_two_step_protocol_has_no_drift(make_card, now):
    cards = [make_card(), make_card()]
    stats = CollectionStats()

    for card, quality in zip(cards * 3, [5, 2, 4, 3, 0, 5]):
        card.review = record_review(card.review, quality, now)
        stats = record_collection_review(stats, quality >= 3, now)

    assert not find_drift(stats, cards).has_drift


def test_skipped_collection_update_is_reported_as_drift(make_card, now):
    card = make_card()
    card.review = record_review(card.review, 5, now)
    card.review = record_review(card.review, 1, now)
    stats = record_collection_review(CollectionStats(), True, now)

    report = find_drift(stats, [card])

    assert report.has_drift
    assert report.total_delta == -1
    assert report.correct_delta == 0
    assert report.incorrect_delta == -1
