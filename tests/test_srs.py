import math
import random
from datetime import datetime, timedelta

import pytest

from item import Item, Quality, Status
from srs import (InvalidQuality, apply_rating, classify, compute_next_review_date, compute_next_state,
                 is_due, is_newly_learned, is_overdue, mark_viewed, next_status)


ALL_QUALITIES = [Quality.AGAIN, Quality.HARD, Quality.GOOD, Quality.EASY]


@pytest.mark.parametrize("interval,e_factor,consecutive", [(1, 2.5, 0), (10, 2.0, 4), (250, 1.3, 12), (6, 2.5, 2)])
def test_again_resets_interval_and_streak(interval, e_factor, consecutive):
    state = compute_next_state(Quality.AGAIN, interval, e_factor, consecutive)

    assert state.interval == 1
    assert state.consecutive_correct == 0


def test_lapse_after_streak():
    state = compute_next_state(Quality.AGAIN, 10, 2.0, 4)

    assert state.interval == 1
    assert state.consecutive_correct == 0
    assert state.e_factor == pytest.approx(1.8)


def test_two_good_ratings_from_initial_state():
    first = compute_next_state(Quality.GOOD, 1, 2.5, 0)
    assert first.interval == 1
    assert first.consecutive_correct == 1
    assert first.e_factor == 2.5

    second = compute_next_state(Quality.GOOD, first.interval, first.e_factor, first.consecutive_correct)
    assert second.interval == 6
    assert second.consecutive_correct == 2


def test_third_success_multiplies_by_new_e_factor():
    state = compute_next_state(Quality.GOOD, 6, 2.5, 2)

    assert state.consecutive_correct == 3
    assert state.interval == 15


def test_easy_gets_bonus():
    state = compute_next_state(Quality.EASY, 10, 2.0, 2)

    assert state.e_factor == pytest.approx(2.1)
    assert state.interval == 27


def test_hard_counts_as_success_but_lowers_ease():
    state = compute_next_state(Quality.HARD, 4, 2.5, 2)

    assert state.consecutive_correct == 3
    assert state.e_factor == pytest.approx(2.45)
    assert state.interval == 10


@pytest.mark.parametrize("quality", [Quality.HARD, Quality.GOOD, Quality.EASY])
def test_graduated_steps(quality):
    first = compute_next_state(quality, 1, 2.5, 0)
    second = compute_next_state(quality, first.interval, first.e_factor, first.consecutive_correct)

    assert [first.interval, second.interval] == [1, 6]


def test_e_factor_stays_within_bounds_for_random_histories():
    rnd = random.Random(7)
    for _ in range(200):
        interval, e_factor, consecutive = 1, 2.5, 0
        for _ in range(30):
            state = compute_next_state(rnd.choice(ALL_QUALITIES), interval, e_factor, consecutive)
            interval, e_factor, consecutive = state.interval, state.e_factor, state.consecutive_correct
            assert 1.3 <= e_factor <= 2.5
            assert interval >= 1


def test_e_factor_without_upper_bound():
    state = compute_next_state(Quality.GOOD, 1, 2.5, 0, max_e_factor=None)

    assert state.e_factor == pytest.approx(2.6)


def test_e_factor_floor():
    state = compute_next_state(Quality.AGAIN, 5, 1.35, 3)

    assert state.e_factor == 1.3


@pytest.mark.parametrize("quality", [-1, 4, 2.0, '2', None, True])
def test_invalid_quality_is_rejected(quality):
    with pytest.raises(InvalidQuality):
        compute_next_state(quality, 1, 2.5, 0)


def test_corrupt_interval_falls_back(caplog):
    state = compute_next_state(Quality.GOOD, float('nan'), 2.0, 2)

    assert state.interval == 2
    assert 'Corrupt interval' in caplog.text


def test_next_review_date(now):
    assert compute_next_review_date(6, now) == now + timedelta(days=6)
    assert compute_next_review_date(2.6, now) == now + timedelta(days=3)


def test_next_review_date_is_deterministic(now):
    assert compute_next_review_date(15, now) == compute_next_review_date(15, now)


@pytest.mark.parametrize("interval", [float('nan'), -5, float('inf'), 'abc', None, 1e12])
def test_invalid_interval_schedules_one_day_out(now, interval, caplog):
    assert compute_next_review_date(interval, now) == now + timedelta(days=1)
    assert 'scheduling the next review in 1 day' in caplog.text


def test_is_due(now):
    assert is_due(None, now)
    assert is_due(now, now)
    assert is_due(now - timedelta(seconds=1), now)
    assert not is_due(now + timedelta(seconds=1), now)


def test_is_overdue_uses_calendar_days(now):
    assert is_overdue(datetime(2024, 1, 9, 23, 59), now)
    assert not is_overdue(datetime(2024, 1, 10, 0, 1), now)
    assert not is_overdue(None, now)


def test_classify(make_item, now):
    assert classify(Item()) == Status.NEW
    assert classify(make_item(status=Status.LEARNED)) == Status.LEARNED
    assert classify(make_item(status=Status.NEW, total_reviews=2, next_review_date=now)) == Status.LEARNING
    assert classify(make_item(status=None, total_reviews=2, next_review_date=now)) == Status.LEARNING


@pytest.mark.parametrize("quality,expected", [
    (Quality.AGAIN, Status.REVIEW), (Quality.HARD, Status.REVIEW),
    (Quality.GOOD, Status.LEARNED), (Quality.EASY, Status.LEARNED),
])
def test_next_status(quality, expected):
    assert next_status(quality) == expected


def test_first_exposure_moves_new_to_learning(now):
    item = Item(word='Haus')
    viewed = mark_viewed(item, now)

    assert classify(item) == Status.NEW
    assert viewed.status == Status.LEARNING
    assert classify(viewed) == Status.LEARNING
    assert viewed.next_review_date == now + timedelta(days=1)
    assert viewed.total_reviews == 0
    assert viewed.last_review_date is None
    assert item.status == Status.NEW


def test_first_exposure_with_rating_policy_does_nothing(now):
    item = Item()

    assert mark_viewed(item, now, policy='rating') is item


def test_first_exposure_keeps_rated_items(make_item, now):
    item = make_item(status=Status.REVIEW, next_review_date=now)

    assert mark_viewed(item, now) is item


def test_first_rating_scenario(now):
    item = Item()
    assert classify(item) == Status.NEW

    rated = apply_rating(item, Quality.GOOD, now)

    assert rated.total_reviews == 1
    assert rated.status == Status.LEARNED
    assert rated.interval == 1
    assert rated.next_review_date == now + timedelta(days=1)
    assert rated.last_review_date == now
    assert item.total_reviews == 0


def test_rating_counts_mistakes_only_on_again(now):
    item = Item()
    item = apply_rating(item, Quality.HARD, now)
    assert item.mistake_count == 0
    assert item.status == Status.REVIEW

    item = apply_rating(item, Quality.AGAIN, now)
    assert item.mistake_count == 1
    assert item.consecutive_correct == 0
    assert item.total_reviews == 2


def test_rating_a_missing_item():
    with pytest.raises(TypeError):
        apply_rating(None, Quality.GOOD, datetime.now())


def test_invalid_quality_leaves_item_untouched(now):
    item = Item()
    with pytest.raises(InvalidQuality):
        apply_rating(item, 7, now)
    assert item == Item(word_id=item.word_id, created_date=item.created_date)


def test_newly_learned_is_edge_triggered(now):
    item = mark_viewed(Item(), now)
    learned = apply_rating(item, Quality.GOOD, now)
    still_learned = apply_rating(learned, Quality.EASY, now + timedelta(days=1))
    lapsed = apply_rating(still_learned, Quality.AGAIN, now + timedelta(days=2))
    relearned = apply_rating(lapsed, Quality.GOOD, now + timedelta(days=3))

    assert is_newly_learned(item, learned)
    assert not is_newly_learned(learned, still_learned)
    assert not is_newly_learned(still_learned, lapsed)
    assert is_newly_learned(lapsed, relearned)


def test_interval_never_below_one(now):
    item = Item(interval=1, e_factor=1.3, consecutive_correct=5)
    for quality in ALL_QUALITIES:
        assert apply_rating(item, quality, now).interval >= 1
    assert not math.isnan(apply_rating(item, Quality.GOOD, now).e_factor)
