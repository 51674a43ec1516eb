"""SM-2 style scheduling for vocabulary items.

Everything here is a pure function of its arguments: the current time is
always passed in as ``now`` and items are never mutated, a new ``Item`` is
returned instead.
"""
import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from item import DEFAULT_E_FACTOR, DEFAULT_INTERVAL, Item, Quality, Status, reset_item


logger = logging.getLogger(__name__)

MIN_E_FACTOR = 1.3
MAX_E_FACTOR = 2.5
EASY_BONUS = 1.3

FIRST_EXPOSURE_VIEW = 'view'
FIRST_EXPOSURE_RATING = 'rating'

_E_FACTOR_DELTAS = {
    Quality.AGAIN: -0.20,
    Quality.HARD: -0.05,
    Quality.GOOD: 0.10,
    Quality.EASY: 0.10,
}


class InvalidQuality(ValueError):
    pass


class InvalidInterval(ValueError):
    pass


@dataclass(frozen=True)
class NextState:
    interval: int
    e_factor: float
    consecutive_correct: int


def validate_quality(quality) -> Quality:
    # bool is an int subclass, but True/False are not grades
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQuality(f'Quality must be an integer between 0 and 3, got {quality!r}')
    try:
        return Quality(quality)
    except ValueError:
        raise InvalidQuality(f'Quality must be between 0 and 3, got {quality}') from None


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def calculate_e_factor(e_factor: float, quality: Quality, min_e_factor: float = MIN_E_FACTOR,
                       max_e_factor: Optional[float] = MAX_E_FACTOR) -> float:
    new_ef = e_factor + _E_FACTOR_DELTAS[quality]
    if quality in (Quality.AGAIN, Quality.HARD):
        return max(min_e_factor, new_ef)
    if max_e_factor is None:
        return new_ef
    return min(max_e_factor, new_ef)


def calculate_interval(interval: int, e_factor: float, consecutive_correct: int, quality: Quality) -> int:
    """Returns number of days until the next review."""
    if quality == Quality.AGAIN:
        return 1
    if consecutive_correct == 1:
        new_interval = 1
    elif consecutive_correct == 2:
        new_interval = 6
    else:
        bonus = EASY_BONUS if quality == Quality.EASY else 1.0
        new_interval = round(interval * e_factor * bonus)
    return max(1, new_interval)


def compute_next_state(quality, interval: int, e_factor: float, consecutive_correct: int,
                       min_e_factor: float = MIN_E_FACTOR,
                       max_e_factor: Optional[float] = MAX_E_FACTOR) -> NextState:
    """Computes the scheduling state that follows a single rating.

    Only AGAIN counts as a lapse: it resets the streak and the interval.
    HARD, GOOD and EASY all extend the streak, following the graduated
    1 -> 6 -> interval * ease curve. EASY gets an extra 30% on the
    multiplicative step.

    Raises:
        InvalidQuality: if ``quality`` is not one of 0, 1, 2, 3.
    """
    quality = validate_quality(quality)

    if not _is_number(interval) or interval < 1:
        logger.warning(f'Corrupt interval {interval!r}, falling back to {DEFAULT_INTERVAL} day.')
        interval = DEFAULT_INTERVAL
    if not _is_number(e_factor):
        logger.warning(f'Corrupt e-factor {e_factor!r}, falling back to {DEFAULT_E_FACTOR}.')
        e_factor = DEFAULT_E_FACTOR
    if not _is_number(consecutive_correct) or consecutive_correct < 0:
        consecutive_correct = 0

    new_ef = calculate_e_factor(e_factor, quality, min_e_factor, max_e_factor)
    if quality == Quality.AGAIN:
        new_consecutive = 0
    else:
        new_consecutive = int(consecutive_correct) + 1
    new_interval = calculate_interval(interval, new_ef, new_consecutive, quality)

    return NextState(interval=new_interval, e_factor=new_ef, consecutive_correct=new_consecutive)


def _checked_days(interval) -> int:
    if not _is_number(interval) or interval < 0:
        raise InvalidInterval(f'Invalid interval: {interval!r}')
    return round(interval)


def compute_next_review_date(interval, now: datetime) -> datetime:
    """Returns ``now`` shifted by ``interval`` days.

    A bad interval never reaches date arithmetic: it is replaced by a
    one day interval and a warning is logged.
    """
    try:
        days = _checked_days(interval)
        return now + timedelta(days=days)
    except (InvalidInterval, OverflowError) as e:
        logger.warning(f'{e}; scheduling the next review in 1 day.')
        return now + timedelta(days=1)


def is_due(next_review_date: Optional[datetime], now: datetime) -> bool:
    if next_review_date is None:
        return True
    return now >= next_review_date


def is_overdue(next_review_date: Optional[datetime], now: datetime) -> bool:
    """True when the review date falls on a calendar day before today."""
    if next_review_date is None:
        return False
    return next_review_date.date() < now.date()


def classify(item: Item) -> Status:
    if item.total_reviews == 0 and item.next_review_date is None:
        return Status.NEW
    if item.status is None or item.status == Status.NEW:
        # has history but no status, e.g. a migrated legacy record
        return Status.LEARNING
    return Status(item.status)


def next_status(quality) -> Status:
    """Any state rated GOOD or EASY becomes LEARNED, AGAIN or HARD sends it to REVIEW."""
    quality = validate_quality(quality)
    if quality in (Quality.GOOD, Quality.EASY):
        return Status.LEARNED
    return Status.REVIEW


def mark_viewed(item: Item, now: datetime, policy: str = FIRST_EXPOSURE_VIEW) -> Item:
    """Applies the first exposure of a word.

    With the ``view`` policy a NEW item moves to LEARNING and is due again
    the next day. Displaying a word is not a review, so ``total_reviews``
    and ``last_review_date`` stay untouched.
    """
    if item is None:
        raise TypeError('Cannot mark a missing item as viewed.')
    if policy not in (FIRST_EXPOSURE_VIEW, FIRST_EXPOSURE_RATING):
        raise ValueError(f'Unknown first exposure policy "{policy}"')
    if policy == FIRST_EXPOSURE_RATING or classify(item) != Status.NEW:
        return item
    return replace(item,
                   status=Status.LEARNING,
                   interval=DEFAULT_INTERVAL,
                   next_review_date=compute_next_review_date(DEFAULT_INTERVAL, now))


def apply_rating(item: Item, quality, now: datetime, min_e_factor: float = MIN_E_FACTOR,
                 max_e_factor: Optional[float] = MAX_E_FACTOR) -> Item:
    """Returns the item as it is after being rated with ``quality`` at ``now``."""
    if item is None:
        raise TypeError('Cannot rate a missing item.')
    quality = validate_quality(quality)

    state = compute_next_state(quality, item.interval, item.e_factor, item.consecutive_correct,
                               min_e_factor=min_e_factor, max_e_factor=max_e_factor)
    mistakes = item.mistake_count + 1 if quality == Quality.AGAIN else item.mistake_count

    return replace(item,
                   status=next_status(quality),
                   interval=state.interval,
                   e_factor=state.e_factor,
                   consecutive_correct=state.consecutive_correct,
                   next_review_date=compute_next_review_date(state.interval, now),
                   total_reviews=item.total_reviews + 1,
                   mistake_count=mistakes,
                   last_review_date=now)


def is_newly_learned(before: Item, after: Item) -> bool:
    return classify(before) != Status.LEARNED and classify(after) == Status.LEARNED


__all__ = [
    'InvalidInterval', 'InvalidQuality', 'NextState', 'apply_rating', 'calculate_e_factor',
    'calculate_interval', 'classify', 'compute_next_review_date', 'compute_next_state', 'is_due',
    'is_newly_learned', 'is_overdue', 'mark_viewed', 'next_status', 'reset_item', 'validate_quality',
]
