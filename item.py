import enum
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional


DEFAULT_E_FACTOR = 2.5
DEFAULT_INTERVAL = 1


class Status(str, enum.Enum):
    NEW = 'new'
    LEARNING = 'learning'
    REVIEW = 'review'
    LEARNED = 'learned'


class Quality(enum.IntEnum):
    AGAIN = 0
    HARD = 1
    GOOD = 2
    EASY = 3

    @classmethod
    def from_binary(cls, passed: bool) -> 'Quality':
        """Maps the thumbs up / thumbs down flow onto the four-level scale."""
        return cls.GOOD if passed else cls.AGAIN


@dataclass
class Item:
    word_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    word: str = ''
    meaning: str = ''
    sentence: str = ''
    sentence_meaning: str = ''
    article: str = ''
    word_type: str = ''
    status: Status = Status.NEW
    interval: int = DEFAULT_INTERVAL
    e_factor: float = DEFAULT_E_FACTOR
    consecutive_correct: int = 0
    next_review_date: Optional[datetime] = None
    total_reviews: int = 0
    mistake_count: int = 0
    last_review_date: Optional[datetime] = None
    created_date: datetime = field(default_factory=datetime.now)


def reset_item(item: Item) -> Item:
    """Wipes all scheduling state, keeping identity and vocabulary text."""
    return replace(item,
                   status=Status.NEW,
                   interval=DEFAULT_INTERVAL,
                   e_factor=DEFAULT_E_FACTOR,
                   consecutive_correct=0,
                   total_reviews=0,
                   mistake_count=0,
                   next_review_date=None,
                   last_review_date=None)
