import argparse
import json
import logging
import os.path
import sys
from datetime import datetime

from pydantic import ValidationError

from item import Quality
from learning_plan import LearningPlan
from progress_report import ProgressReport
from srs import InvalidQuality
from templates import Templates
from user_config import UserConfig
from words_db import WordsDB
from words_progress_db import WordsProgressDB
from working_set import BrowseSort, StudyMode, WorkingSetOptions


logger = logging.getLogger('flashcards')

DEFAULT_DB = 'progress.csv'
TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')


def parse_quality(value: str) -> int:
    if value.isdigit():
        return int(value)
    try:
        return Quality[value.upper()].value
    except KeyError:
        raise argparse.ArgumentTypeError(f'unknown quality "{value}", use 0-3 or again/hard/good/easy') from None


def parse_config_value(value: str):
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Spaced repetition flashcards')
    parser.add_argument('--db', default=DEFAULT_DB, help='progress CSV file')
    parser.add_argument('--config', default=None, help='JSON config file (defaults to $SRS_CONFIG)')
    parser.add_argument('--templates', default=TEMPLATES_DIR)
    parser.add_argument('-v', '--verbose', action='store_true')
    sub = parser.add_subparsers(dest='command', required=True)

    p_init = sub.add_parser('init', help='create the progress database from a vocabulary CSV')
    p_init.add_argument('vocab')

    p_reset_all = sub.add_parser('reset-all', help='wipe all progress and reload the vocabulary')
    p_reset_all.add_argument('vocab')

    sub.add_parser('stats', help='show progress counts')
    sub.add_parser('due', help='list words due for review')

    p_next = sub.add_parser('next', help='list the next words for a study mode')
    p_next.add_argument('--mode', default=StudyMode.RANDOM.value, choices=[m.value for m in StudyMode])
    p_next.add_argument('--limit', type=int, default=10)
    p_next.add_argument('--seed', type=int, default=None)

    p_browse = sub.add_parser('browse', help='search and sort all words')
    p_browse.add_argument('--search', default=None)
    p_browse.add_argument('--sort', default=None, choices=[s.value for s in BrowseSort])

    p_show = sub.add_parser('show', help='display a word')
    p_show.add_argument('word_id')

    p_rate = sub.add_parser('rate', help='rate a word')
    p_rate.add_argument('word_id')
    p_rate.add_argument('quality', type=parse_quality)

    p_config = sub.add_parser('config', help='show the settings or change one of them')
    p_config.add_argument('key', nargs='?')
    p_config.add_argument('value', nargs='?', help='JSON value, plain text is taken as a string')

    p_reset = sub.add_parser('reset', help='reset a word to new')
    p_reset.add_argument('word_id')
    return parser


def configure(user_config: UserConfig, key, value) -> int:
    if key is not None:
        if value is None:
            print(f'Missing value for {key}.')
            return 1
        if user_config.data_path is None:
            logger.warning('No config file given, the change only lasts for this run.')
        user_config.set_value(key, parse_config_value(value))
    for name, current in user_config.get_config().model_dump().items():
        print(f'{name}: {current}')
    return 0


def run(args, now: datetime) -> int:
    user_config = UserConfig(args.config)
    if args.command == 'config':
        return configure(user_config, args.key, args.value)
    config = user_config.get_config()
    progress_db = WordsProgressDB(args.db)
    report = ProgressReport(Templates(args.templates), uilang=config.ui_language)

    def on_learned(item):
        logger.info(f'New word learned: {item.word}')

    lp = LearningPlan(progress_db, config, on_learned=on_learned)

    if args.command in ('init', 'reset-all'):
        if args.command == 'init' and progress_db.get_progress_df().shape[0] > 0:
            print(f'{args.db} already holds progress, use reset-all to start over.')
            return 1
        items = lp.reset_all(WordsDB(args.vocab), now)
        print(f'Loaded {len(items)} words.')
    elif args.command == 'stats':
        print(report.summary(progress_db.get_items(), now, mature_interval=config.mature_interval))
    elif args.command == 'due':
        print(report.due_today(progress_db.get_items(), now))
    elif args.command in ('next', 'browse'):
        if args.command == 'next':
            options = WorkingSetOptions(seed=args.seed, limit=args.limit,
                                        future_fraction=config.random_future_fraction,
                                        overdue_weight=config.overdue_weight)
            words = lp.get_next_words(args.mode, now, options)
        else:
            options = WorkingSetOptions(search=args.search, sort=BrowseSort(args.sort or config.browse_sort))
            words = lp.get_next_words(StudyMode.BROWSE, now, options)
        if not words:
            print('Nothing to study here.')
        for item in words:
            print(report.word_card(item))
    elif args.command == 'show':
        print(report.word_card(lp.show_word(args.word_id, now)))
    elif args.command == 'rate':
        item = lp.process_response(args.word_id, args.quality, now)
        if item is None:
            print('Word not updated, try again.')
            return 1
        print(report.word_card(item))
    elif args.command == 'reset':
        print(report.word_card(lp.reset_word(args.word_id)))
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    try:
        return run(args, datetime.now())
    except (KeyError, InvalidQuality, ValidationError) as e:
        print(f'Error: {e}')
        return 2


if __name__ == '__main__':
    sys.exit(main())
