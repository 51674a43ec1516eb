import pathlib
import sys
from datetime import datetime

import pytest

# Ensure the repository root is on the path for direct test runs.
REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.append(str(REPO_ROOT))

from item import Item, Status


NOW = datetime(2024, 1, 10, 12, 0, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_item():
    counter = iter(range(10_000))

    def _make(**kwargs):
        n = next(counter)
        kwargs.setdefault('word_id', f'w{n}')
        kwargs.setdefault('word', f'word{n}')
        kwargs.setdefault('meaning', f'meaning{n}')
        kwargs.setdefault('created_date', datetime(2024, 1, 1))
        if kwargs.get('status') not in (None, Status.NEW) or kwargs.get('next_review_date') is not None:
            kwargs.setdefault('total_reviews', 1)
        return Item(**kwargs)

    return _make


@pytest.fixture
def vocab_csv(tmp_path):
    path = tmp_path / 'words.csv'
    path.write_text(
        'word,meaning,sentence,sentence_meaning,article,type\n'
        'Haus,house,Das Haus ist groß.,The house is big.,das,noun\n'
        'laufen,to run,Ich laufe schnell.,I run fast.,,verb\n'
        'schön,beautiful,,,,adjective\n',
        encoding='utf-8')
    return path
