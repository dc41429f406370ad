import pytest

from crazyemoji import db
from crazyemoji.errors import NoWordsAvailable
from crazyemoji.models import Category, Room, Word
from crazyemoji.services.rooms import words

from conftest import register


def _category_id(name):
    return Category.query.filter_by(name=name).one().id


def _make_room(code, category_name='Animals'):
    register('owner')
    room = Room(room_code=code, room_name='Words room', category_id=_category_id(category_name),
                rounds=10, round_duration=30, room_creator='owner')
    db.session.add(room)
    db.session.commit()
    return room


def test_load_words_trims_and_skips_duplicates(flask_app):
    added = words.load_words('Colors', ['red\n', '  blue ', '', 'red', '   \n', 'x' * 65, 'green'])
    db.session.commit()

    assert added == 3
    texts = sorted(w.text for w in Word.query.filter_by(category_id=_category_id('Colors')))
    assert texts == ['blue', 'green', 'red']

    assert words.load_words('Colors', ['red', 'purple']) == 1


def test_preload_then_dequeue_uses_each_word_once(flask_app):
    _make_room('ABC123')
    words.preload('ABC123', _category_id('Animals'), 10)
    db.session.commit()
    assert words.remaining('ABC123') == 10

    drawn = [words.dequeue('ABC123') for _ in range(10)]
    db.session.commit()

    assert len(set(drawn)) == 10
    assert set(drawn) <= set(w.text for w in Word.query.filter_by(category_id=_category_id('Animals')))
    with pytest.raises(NoWordsAvailable):
        words.dequeue('ABC123')


def test_preload_fails_when_pool_is_too_small(flask_app):
    _make_room('ABC123', 'Tiny')
    with pytest.raises(NoWordsAvailable):
        words.preload('ABC123', _category_id('Tiny'), 10)
    assert words.remaining('ABC123') == 0


def test_dequeue_without_preload(flask_app):
    with pytest.raises(NoWordsAvailable):
        words.dequeue('NOPE00')


def test_seed_words_command(flask_app, tmp_path):
    words_file = tmp_path / 'colors.txt'
    words_file.write_text('red\nblue\n\nred\n', encoding='utf-8')

    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['seed-words', 'Colors', str(words_file)])

    assert result.exit_code == 0
    assert 'Added 2 words to Colors.' in result.output
    assert Word.query.filter_by(category_id=_category_id('Colors')).count() == 2
