from datetime import datetime
from typing import List

from item import Item
from srs import classify
from templates import Templates
from working_set import MATURE_INTERVAL, compute_stats, get_difficult_words, get_due_items


class ProgressReport:
    def __init__(self, templates: Templates, uilang: str = 'english'):
        self.templates = templates
        self.uilang = uilang

    def summary(self, items: List[Item], now: datetime, mature_interval: int = MATURE_INTERVAL) -> str:
        stats = compute_stats(items, now, mature_interval=mature_interval)
        return self.templates.render(self.uilang, 'progress_report', stats=stats,
                                     difficult_words=get_difficult_words(items))

    def due_today(self, items: List[Item], now: datetime) -> str:
        return self.templates.render(self.uilang, 'due_today', words=get_due_items(items, now))

    def word_card(self, item: Item) -> str:
        return self.templates.render(self.uilang, 'word_card', item=item, status=classify(item).value)
