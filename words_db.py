import logging
import threading
import uuid
from datetime import datetime
from typing import List, Optional

import pandas as pd

from item import DEFAULT_E_FACTOR, Item, Status
from srs import compute_next_review_date


logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['word', 'meaning']
OPTIONAL_COLUMNS = ['sentence', 'sentence_meaning', 'article', 'type']


def _text(value) -> str:
    return '' if value is None or pd.isna(value) else str(value).strip()


def migrate_legacy_word(data: dict, item: Item, now: datetime) -> Item:
    """Seeds scheduling fields for a word exported by the status-only app version.

    Words that were "learning" restart with a one day interval, "learned"
    words are placed on a 21 day interval. The old view counter becomes
    the review count.
    """
    status = _text(data.get('status')).lower()
    count = data.get('count')
    item.total_reviews = 0 if count is None or pd.isna(count) else int(count)
    item.e_factor = DEFAULT_E_FACTOR
    if status == Status.LEARNING.value:
        item.status = Status.LEARNING
        item.consecutive_correct = 1
        item.interval = 1
        item.next_review_date = compute_next_review_date(item.interval, now)
    elif status == Status.LEARNED.value:
        item.status = Status.LEARNED
        item.consecutive_correct = 3
        item.interval = 21
        item.next_review_date = compute_next_review_date(item.interval, now)
    elif item.total_reviews > 0:
        # reviewed before, but without a status worth keeping
        item.status = Status.LEARNING
        item.next_review_date = compute_next_review_date(item.interval, now)
    return item


class WordsDB:
    """Static vocabulary list the study collection is created from."""

    def __init__(self, db_path):
        self.db_path = db_path
        self.words_df = pd.read_csv(self.db_path)
        missing = [col for col in REQUIRED_COLUMNS if col not in self.words_df.columns]
        if missing:
            raise ValueError(f'Vocabulary file {db_path} is missing columns: {", ".join(missing)}')
        if 'id' in self.words_df.columns and not self.words_df['id'].is_unique:
            raise ValueError('"id" field in the words database is not unique.')
        self._lock = threading.Lock()

    def get_words_df(self):
        self._lock.acquire()
        wdf_cpy = self.words_df.copy()
        self._lock.release()
        return wdf_cpy

    @property
    def is_legacy(self) -> bool:
        return 'status' in self.words_df.columns and 'next_review_date' not in self.words_df.columns

    def create_initial_items(self, now: Optional[datetime] = None) -> List[Item]:
        """Creates one fresh item per vocabulary row, each with a new id."""
        now = now or datetime.now()
        legacy = self.is_legacy
        items = []
        for data in self.get_words_df().to_dict('records'):
            item = Item(word_id=str(uuid.uuid4()),
                        word=_text(data.get('word')),
                        meaning=_text(data.get('meaning')),
                        sentence=_text(data.get('sentence')),
                        sentence_meaning=_text(data.get('sentence_meaning')),
                        article=_text(data.get('article')),
                        word_type=_text(data.get('type')),
                        created_date=now)
            if legacy:
                item = migrate_legacy_word(data, item, now)
            items.append(item)
        if legacy:
            logger.info(f'Migrated {len(items)} words from the legacy status format.')
        return items
