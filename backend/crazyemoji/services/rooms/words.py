"""Word supply: per-room queues of secret words drawn from a category.

The queue is stored in ``room_word`` so it survives restarts and is shared
by every server process. A dequeued word is deleted, which guarantees each
word is used at most once per room.
"""

import random
from typing import Iterable

from flask import current_app

from crazyemoji import db
from crazyemoji.errors import NoWordsAvailable
from crazyemoji.models import Category, RoomWord, Word

MAX_WORD_LENGTH = 64

_rng = random.SystemRandom()


def find_category(name):
    if not isinstance(name, str):
        return None
    return Category.query.filter_by(name=name).first()


def preload(room_code: str, category_id: int, count: int) -> None:
    """Queue ``count`` distinct random words of the category for the room."""
    texts = sorted({text for (text,) in db.session.query(Word.text).filter_by(category_id=category_id)})
    if len(texts) < count:
        raise NoWordsAvailable(f'Category has {len(texts)} words, {count} needed')

    RoomWord.query.filter_by(room_code=room_code).delete()
    for position, text in enumerate(_rng.sample(texts, count)):
        db.session.add(RoomWord(room_code=room_code, position=position, text=text))
    current_app.logger.info(f"[words] preloaded room={room_code} category={category_id} count={count}")


def dequeue(room_code: str) -> str:
    entry = RoomWord.query.filter_by(room_code=room_code).order_by(RoomWord.position).first()
    if entry is None:
        raise NoWordsAvailable('Word queue exhausted')
    text = entry.text
    db.session.delete(entry)
    return text


def remaining(room_code: str) -> int:
    return RoomWord.query.filter_by(room_code=room_code).count()


def load_words(category_name: str, lines: Iterable[str]) -> int:
    """Add words (one per line) to a category, creating it when missing.

    Blank lines are ignored, surrounding whitespace trimmed and words already
    in the category skipped. Returns the number of words added. The caller
    commits.
    """
    category = find_category(category_name)
    if category is None:
        category = Category(name=category_name)
        db.session.add(category)
        db.session.flush()

    known = {text for (text,) in db.session.query(Word.text).filter_by(category_id=category.id)}
    added = 0
    for line in lines:
        text = line.strip()
        if not text or len(text) > MAX_WORD_LENGTH or text in known:
            continue
        db.session.add(Word(text=text, category_id=category.id))
        known.add(text)
        added += 1
    return added
