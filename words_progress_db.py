import logging
import os.path
import threading
from typing import Iterable, List, Optional

import pandas as pd

from item import DEFAULT_E_FACTOR, DEFAULT_INTERVAL, Item, Status


logger = logging.getLogger(__name__)

COLUMNS = ['word_id', 'word', 'meaning', 'sentence', 'sentence_meaning', 'article', 'word_type',
           'status', 'interval', 'e_factor', 'consecutive_correct', 'next_review_date',
           'total_reviews', 'mistake_count', 'last_review_date', 'created_date']
DATE_COLUMNS = ['next_review_date', 'last_review_date', 'created_date']
TEXT_COLUMNS = ['word', 'meaning', 'sentence', 'sentence_meaning', 'article', 'word_type']
STR_COLUMNS = ['word_id', 'status'] + TEXT_COLUMNS


def _to_datetime(value):
    if value is None or pd.isna(value):
        return None
    return pd.Timestamp(value).to_pydatetime()


def _to_int(value, default: int) -> int:
    if value is None or pd.isna(value):
        return default
    return int(value)


def _to_float(value, default: float) -> float:
    if value is None or pd.isna(value):
        return default
    return float(value)


def _to_text(value) -> str:
    if value is None or pd.isna(value):
        return ''
    return str(value)


def _normalize_dtypes(df: pd.DataFrame) -> pd.DataFrame:
    for col in STR_COLUMNS:
        df[col] = df[col].astype(object)
    for col in DATE_COLUMNS:
        df[col] = pd.to_datetime(df[col], format='ISO8601').dt.as_unit('ns')
    return df


def row_to_item(row: dict) -> Item:
    status = row.get('status')
    return Item(word_id=str(row['word_id']),
                **{col: _to_text(row.get(col)) for col in TEXT_COLUMNS},
                status=Status(status) if isinstance(status, str) and status else Status.NEW,
                interval=_to_int(row.get('interval'), DEFAULT_INTERVAL),
                e_factor=_to_float(row.get('e_factor'), DEFAULT_E_FACTOR),
                consecutive_correct=_to_int(row.get('consecutive_correct'), 0),
                next_review_date=_to_datetime(row.get('next_review_date')),
                total_reviews=_to_int(row.get('total_reviews'), 0),
                mistake_count=_to_int(row.get('mistake_count'), 0),
                last_review_date=_to_datetime(row.get('last_review_date')),
                created_date=_to_datetime(row.get('created_date')) or pd.Timestamp.now().to_pydatetime())


def item_to_row(item: Item) -> dict:
    row = {col: getattr(item, col) for col in COLUMNS}
    row['status'] = Status(item.status).value
    return row


class WordsProgressDB:
    """CSV backed store holding one row of scheduling state per word."""

    def __init__(self, db_path):
        self.db_path = db_path
        self._lock = threading.Lock()
        if not os.path.exists(self.db_path):
            self.progress_df = pd.DataFrame(columns=COLUMNS)
            self.save_progress()
        progress_df = pd.read_csv(self.db_path, dtype={col: str for col in STR_COLUMNS})
        if not progress_df['word_id'].is_unique:
            raise ValueError('"word_id" field in the progress database is not unique.')
        self.progress_df = _normalize_dtypes(progress_df.reindex(columns=COLUMNS))

    def get_progress_df(self):
        self._lock.acquire()
        pdf_cpy = self.progress_df.copy()
        self._lock.release()
        return pdf_cpy

    def save_progress(self):
        self._lock.acquire()
        self.progress_df.to_csv(self.db_path, index=False)
        self._lock.release()

    def get_items(self) -> List[Item]:
        self._lock.acquire()
        items = [row_to_item(row) for row in self.progress_df.to_dict('records')]
        self._lock.release()
        return items

    def get_item(self, word_id: str) -> Optional[Item]:
        self._lock.acquire()
        rows = self.progress_df[self.progress_df['word_id'] == word_id]
        if rows.shape[0] == 0:
            self._lock.release()
            return None
        if rows.shape[0] != 1:
            self._lock.release()
            raise ValueError(f'Number of rows for word {word_id} must be exactly 1, found {rows.shape[0]}.')
        item = row_to_item(rows.iloc[0].to_dict())
        self._lock.release()
        return item

    def set_item(self, item: Item) -> None:
        row = item_to_row(item)
        self._lock.acquire()
        mask = self.progress_df['word_id'] == item.word_id
        if mask.sum() == 0:
            new_row = _normalize_dtypes(pd.DataFrame([row], columns=COLUMNS))
            if self.progress_df.shape[0] == 0:
                self.progress_df = new_row
            else:
                self.progress_df = pd.concat([self.progress_df, new_row], ignore_index=True)
        else:
            for col, value in row.items():
                self.progress_df.loc[mask, col] = pd.NaT if value is None and col in DATE_COLUMNS else value
        self._lock.release()

    def set_items(self, items: Iterable[Item]) -> None:
        """Replaces the whole collection."""
        df = _normalize_dtypes(pd.DataFrame([item_to_row(item) for item in items], columns=COLUMNS))
        self._lock.acquire()
        self.progress_df = df
        self._lock.release()
        logger.info(f'Progress database now holds {df.shape[0]} words.')
