from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

DEMO_WORDS = {
    'Animals': ['ant', 'cat', 'dog', 'elephant', 'giraffe', 'horse', 'kangaroo', 'lion', 'monkey',
                'octopus', 'owl', 'panda', 'penguin', 'rabbit', 'shark', 'snake', 'tiger', 'turtle',
                'whale', 'zebra'],
    'Food': ['apple', 'banana', 'bread', 'burger', 'cake', 'carrot', 'cheese', 'cherry', 'chocolate',
             'cookie', 'egg', 'grapes', 'ice cream', 'lemon', 'pizza', 'popcorn', 'rice', 'spaghetti',
             'strawberry', 'taco'],
    'Movies': ['avatar', 'cars', 'frozen', 'gladiator', 'jaws', 'joker', 'matrix', 'shrek', 'titanic',
               'up', 'alien', 'rocky', 'psycho', 'inception', 'coco', 'moana', 'batman', 'superman',
               'ghostbusters', 'terminator'],
}


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from crazyemoji.errors import register_error_handlers
    register_error_handlers(flask_app)

    from crazyemoji.main import main
    flask_app.register_blueprint(main)

    from crazyemoji.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api')

    # Socket.IO command surface; importing binds the handlers to the shared socketio instance
    from crazyemoji.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from crazyemoji.services.rooms.words import load_words
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            for category, words in DEMO_WORDS.items():
                load_words(category, words)

            db.session.commit()
            print('Database has been reset and seeded!')

    @click.command('seed-words')
    @click.argument('category')
    @click.argument('words_file', type=click.File('r', encoding='utf-8'))
    def seed_words_command(category, words_file):
        """Loads one word per line from WORDS_FILE into CATEGORY."""
        from crazyemoji.services.rooms.words import load_words
        with flask_app.app_context():
            added = load_words(category, words_file)
            db.session.commit()
            print(f'Added {added} words to {category}.')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(seed_words_command)

    return flask_app
