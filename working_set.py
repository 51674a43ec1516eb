"""Builds the ordered set of words to study next for each study mode."""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import numpy as np

from item import Item, Status
from srs import classify, is_due, is_overdue


logger = logging.getLogger(__name__)

MATURE_INTERVAL = 21
FUTURE_FRACTION = 0.1
OVERDUE_WEIGHT = 2.0
DUE_WEIGHT = 1.0


class StudyMode(str, enum.Enum):
    NEW = 'new'
    LEARNING = 'learning'
    REVIEW = 'review'
    LEARNED = 'learned'
    RANDOM = 'random'
    BROWSE = 'browse'


class BrowseSort(str, enum.Enum):
    ALPHABETICAL = 'alphabetical'
    STATUS = 'status'
    REVIEWS = 'reviews'
    RECENT = 'recent'


_STATUS_ORDER = {Status.NEW: 0, Status.LEARNING: 1, Status.REVIEW: 2, Status.LEARNED: 3}

_MODE_STATUS = {
    StudyMode.NEW: Status.NEW,
    StudyMode.LEARNING: Status.LEARNING,
    StudyMode.REVIEW: Status.REVIEW,
    StudyMode.LEARNED: Status.LEARNED,
}


@dataclass
class Stats:
    total: int = 0
    new: int = 0
    learning: int = 0
    review: int = 0
    learned: int = 0
    due: int = 0
    overdue: int = 0
    mature: int = 0


@dataclass
class WorkingSetOptions:
    search: Optional[str] = None
    sort: BrowseSort = BrowseSort.ALPHABETICAL
    seed: Optional[int] = None
    future_fraction: float = FUTURE_FRACTION
    overdue_weight: float = OVERDUE_WEIGHT
    limit: Optional[int] = None


def compute_stats(items: Iterable[Item], now: datetime, mature_interval: int = MATURE_INTERVAL) -> Stats:
    stats = Stats()
    for item in items:
        status = classify(item)
        stats.total += 1
        setattr(stats, status.value, getattr(stats, status.value) + 1)
        if status == Status.LEARNED and item.interval >= mature_interval:
            stats.mature += 1
        if item.total_reviews > 0:
            if is_due(item.next_review_date, now):
                stats.due += 1
            if is_overdue(item.next_review_date, now):
                stats.overdue += 1
    return stats


def due_rank(item: Item, now: datetime) -> int:
    """0 for overdue, 1 for due today (or never scheduled), 2 for not yet due."""
    if is_overdue(item.next_review_date, now):
        return 0
    if is_due(item.next_review_date, now):
        return 1
    return 2


def overdue_seconds(item: Item, now: datetime) -> float:
    if item.next_review_date is None:
        return 0.0
    return (now - item.next_review_date).total_seconds()


def _learning_key(now):
    return lambda item: (due_rank(item, now), -overdue_seconds(item, now), item.e_factor)


def _review_key(now):
    return lambda item: (due_rank(item, now), -item.mistake_count, item.e_factor)


def _learned_key(now):
    return lambda item: (due_rank(item, now), item.interval)


def _matches(item: Item, term: str) -> bool:
    fields = [item.word, item.meaning, item.sentence, item.sentence_meaning, item.article,
              item.word_type, classify(item).value]
    return any(term in (field or '').lower() for field in fields)


def browse(items: List[Item], search: Optional[str] = None,
           sort: BrowseSort = BrowseSort.ALPHABETICAL) -> List[Item]:
    term = (search or '').strip().lower()
    if term:
        items = [item for item in items if _matches(item, term)]

    sort = BrowseSort(sort)
    if sort == BrowseSort.ALPHABETICAL:
        return sorted(items, key=lambda item: (item.word or '').casefold())
    if sort == BrowseSort.STATUS:
        return sorted(items, key=lambda item: _STATUS_ORDER[classify(item)])
    if sort == BrowseSort.REVIEWS:
        return sorted(items, key=lambda item: item.total_reviews, reverse=True)
    return sorted(items, key=lambda item: item.last_review_date or item.created_date, reverse=True)


def weighted_shuffle(items: List[Item], now: datetime, rng: np.random.Generator,
                     future_fraction: float = FUTURE_FRACTION,
                     overdue_weight: float = OVERDUE_WEIGHT) -> List[Item]:
    """Random order biased towards words that need attention.

    Overdue words carry ``overdue_weight``, due and never-scheduled words a
    weight of 1. Each not-yet-due word is admitted to this weighted draw with
    probability ``future_fraction``. The draw is weighted sampling without
    replacement: every candidate gets the key ``u ** (1 / weight)`` with
    ``u`` uniform on [0, 1) and candidates are taken by descending key.
    Words left out of the draw are shuffled and appended afterwards, so
    the whole collection stays reachable.
    """
    candidates, weights, rest = [], [], []
    for item in items:
        rank = due_rank(item, now)
        if rank == 0:
            candidates.append(item)
            weights.append(overdue_weight)
        elif rank == 1:
            candidates.append(item)
            weights.append(DUE_WEIGHT)
        elif rng.random() < future_fraction:
            candidates.append(item)
            weights.append(DUE_WEIGHT)
        else:
            rest.append(item)

    ordered = []
    if candidates:
        keys = rng.random(len(candidates)) ** (1.0 / np.asarray(weights))
        ordered = [candidates[i] for i in np.argsort(-keys, kind='stable')]
    ordered += [rest[i] for i in rng.permutation(len(rest))]
    return ordered


def build_working_set(items: Iterable[Item], mode, now: datetime,
                      options: Optional[WorkingSetOptions] = None) -> List[Item]:
    """Returns the words to present for ``mode`` in presentation order.

    Sorting is stable, so words with equal priority keep their input order
    between calls. An empty list means there is nothing to study.

    Raises:
        ValueError: if ``mode`` is not a known study mode.
    """
    mode = StudyMode(mode)
    options = options or WorkingSetOptions()
    items = list(items)

    if mode in _MODE_STATUS:
        status = _MODE_STATUS[mode]
        selected = [item for item in items if classify(item) == status]
        if mode == StudyMode.NEW:
            selected.sort(key=lambda item: item.created_date)
        elif mode == StudyMode.LEARNING:
            selected.sort(key=_learning_key(now))
        elif mode == StudyMode.REVIEW:
            selected.sort(key=_review_key(now))
        else:
            selected.sort(key=_learned_key(now))
    elif mode == StudyMode.RANDOM:
        rng = np.random.default_rng(options.seed)
        selected = weighted_shuffle(items, now, rng, future_fraction=options.future_fraction,
                                    overdue_weight=options.overdue_weight)
    else:
        selected = browse(items, search=options.search, sort=options.sort)

    logger.debug(f'Working set for mode "{mode.value}": {len(selected)} of {len(items)} words.')
    if options.limit is not None:
        selected = selected[:options.limit]
    return selected


def get_due_items(items: Iterable[Item], now: datetime) -> List[Item]:
    """Reviewed words whose review date has arrived, oldest first."""
    due = [item for item in items if item.total_reviews > 0 and is_due(item.next_review_date, now)]
    return sorted(due, key=lambda item: (item.next_review_date is not None, item.next_review_date or now))


def get_difficult_words(items: Iterable[Item], limit: int = 5) -> List[Dict]:
    difficult = sorted((item for item in items if item.mistake_count > 0),
                       key=lambda item: item.mistake_count, reverse=True)
    res = []
    for item in difficult[:limit]:
        accuracy = 0
        if item.total_reviews > 0:
            accuracy = round((item.total_reviews - item.mistake_count) / item.total_reviews * 100)
        res.append(dict(word=item.word, meaning=item.meaning, mistakes=item.mistake_count, accuracy=accuracy))
    return res
