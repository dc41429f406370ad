import os
import sys
import pytest

# Ensure the backend root (containing the `crazyemoji` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from crazyemoji import DEMO_WORDS, create_app, db, socketio
from crazyemoji.services.rooms import identity, lifecycle
from crazyemoji.services.rooms.words import load_words

PASSWORD = 'secret_pass1'


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = 'DEBUG'
    # Cheap hashing keeps the suite fast
    BCRYPT_LOG_ROUNDS = 4


def file_backed_config(db_path):
    """TestConfig variant whose database a second engine can open."""

    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{db_path}"

    return FileConfig


def build_app(config_class):
    application = create_app(config_class)
    with application.app_context():
        # Ensure models are imported so tables are created
        import crazyemoji.models  # noqa: F401
        db.create_all()
        load_words('Animals', DEMO_WORDS['Animals'])
        load_words('Food', DEMO_WORDS['Food'])
        load_words('Tiny', ['one', 'two', 'three'])
        db.session.commit()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def flask_app():
    yield from build_app(TestConfig)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def sio_factory(flask_app):
    """Connect any number of extra Socket.IO clients to '/ws'."""
    created = []

    def _make():
        test_client = socketio.test_client(flask_app, namespace='/ws')
        test_client.get_received('/ws')
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        if test_client.is_connected('/ws'):
            test_client.disconnect(namespace='/ws')


def sid_for(username):
    return f'sid-{username}'


def register(username):
    return identity.create_user(sid_for(username), username, PASSWORD)


@pytest.fixture()
def players(flask_app):
    names = ['alice', 'bob', 'carol']
    for name in names:
        register(name)
    return names


@pytest.fixture()
def room_code(players):
    """Lobby created by alice in 'Animals' with bob and carol joined."""
    code = lifecycle.create_room(sid_for('alice'), 'Room1', 'Animals', 10, 30)
    lifecycle.join_room(sid_for('bob'), code)
    lifecycle.join_room(sid_for('carol'), code)
    return code


@pytest.fixture()
def started_room(room_code):
    lifecycle.start_game(sid_for('alice'))
    return room_code
