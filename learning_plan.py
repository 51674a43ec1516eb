import logging
from datetime import datetime
from typing import Callable, List, Optional

from item import Item, reset_item
from running_ratings import RunningRatings
from srs import apply_rating, is_newly_learned, mark_viewed, validate_quality
from user_config import StudyConfig
from words_db import WordsDB
from words_progress_db import WordsProgressDB
from working_set import (BrowseSort, Stats, WorkingSetOptions, build_working_set, compute_stats,
                         get_due_items)


logger = logging.getLogger(__name__)


class LearningPlan:
    """Applies study events to the stored collection.

    The scheduling math lives in ``srs``; this class loads the word, runs
    the transition, stores the result and reports words that just became
    learned through ``on_learned``.
    """

    def __init__(self, progress_db: WordsProgressDB, config: Optional[StudyConfig] = None,
                 on_learned: Optional[Callable[[Item], None]] = None,
                 running_ratings: Optional[RunningRatings] = None):
        self.progress_db = progress_db
        self.config = config or StudyConfig()
        self.on_learned = on_learned
        self.running_ratings = running_ratings or RunningRatings(self.config.debounce_seconds)

    def _get_existing(self, word_id: str) -> Item:
        item = self.progress_db.get_item(word_id)
        if item is None:
            raise KeyError(f'Word {word_id} is not found.')
        return item

    def show_word(self, word_id: str, now: datetime) -> Item:
        """Records that a word was displayed, which may start learning it."""
        item = self._get_existing(word_id)
        viewed = mark_viewed(item, now, policy=self.config.first_exposure)
        if viewed != item:
            self.progress_db.set_item(viewed)
            self.progress_db.save_progress()
        return viewed

    def process_response(self, word_id: str, quality, now: datetime) -> Optional[Item]:
        """Rates a word and stores the new schedule.

        Returns None without touching the word when another rating for it is
        still being applied or was applied less than ``debounce_seconds`` ago.
        """
        quality = validate_quality(quality)
        if not self.running_ratings.begin(word_id, now):
            logger.info(f'Ignoring a repeated rating for word {word_id}.')
            return None
        try:
            item = self._get_existing(word_id)
            updated = apply_rating(item, quality, now, min_e_factor=self.config.min_e_factor,
                                   max_e_factor=self.config.max_e_factor)
            self.progress_db.set_item(updated)
            self.progress_db.save_progress()
        except Exception:
            self.running_ratings.cancel(word_id)
            raise
        self.running_ratings.finish(word_id, now)

        if is_newly_learned(item, updated) and self.on_learned is not None:
            self.on_learned(updated)
        return updated

    def reset_word(self, word_id: str) -> Item:
        item = reset_item(self._get_existing(word_id))
        self.progress_db.set_item(item)
        self.progress_db.save_progress()
        return item

    def reset_all(self, words_db: WordsDB, now: Optional[datetime] = None) -> List[Item]:
        """Replaces all progress with a fresh copy of the vocabulary."""
        items = words_db.create_initial_items(now)
        self.progress_db.set_items(items)
        self.progress_db.save_progress()
        return items

    def get_next_words(self, mode, now: datetime, options: Optional[WorkingSetOptions] = None) -> List[Item]:
        if options is None:
            options = WorkingSetOptions(sort=BrowseSort(self.config.browse_sort),
                                        future_fraction=self.config.random_future_fraction,
                                        overdue_weight=self.config.overdue_weight)
        return build_working_set(self.progress_db.get_items(), mode, now, options)

    def get_stats(self, now: datetime) -> Stats:
        return compute_stats(self.progress_db.get_items(), now, mature_interval=self.config.mature_interval)

    def get_due_today(self, now: datetime) -> List[Item]:
        return get_due_items(self.progress_db.get_items(), now)
