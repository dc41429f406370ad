from datetime import datetime, timezone
from crazyemoji import db, bcrypt

ROLE_PLAYER = 'Player'
ROLE_COMMANDER = 'Commander'
NO_ROOM = '-1'


def utcnow():
    return datetime.now(timezone.utc)


class User(db.Model):
    __tablename__ = 'user'
    username = db.Column(db.String(32), primary_key=True)
    password_hash = db.Column(db.String(128), nullable=False)
    # Current Socket.IO session id; rebound on every login
    connection_id = db.Column(db.String(64), unique=True, nullable=True, index=True)
    membership = db.relationship('RoomMember', back_populates='user', uselist=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'username': self.username,
            'room_code': self.membership.room_code if self.membership else NO_ROOM,
        }


class Category(db.Model):
    __tablename__ = 'category'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False, index=True)
    words = db.relationship('Word', back_populates='category', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'word_count': Word.query.filter_by(category_id=self.id).count(),
        }


class Word(db.Model):
    __tablename__ = 'word'
    id = db.Column(db.Integer, primary_key=True)
    text = db.Column(db.String(64), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=False, index=True)
    category = db.relationship('Category', back_populates='words')


class Room(db.Model):
    __tablename__ = 'room'
    room_code = db.Column(db.String(6), primary_key=True)
    room_name = db.Column(db.String(32), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id', ondelete='SET NULL'), nullable=True)
    rounds = db.Column(db.Integer, nullable=False)
    round_duration = db.Column(db.Integer, nullable=False)
    room_creator = db.Column(db.String(32), db.ForeignKey('user.username'), nullable=False)
    game_started = db.Column(db.Boolean, default=False, nullable=False)
    round_word = db.Column(db.String(64), nullable=True)
    emojis_sent = db.Column(db.Boolean, default=False, nullable=False)
    emojis_sent_time = db.Column(db.DateTime(timezone=True), nullable=True)
    round_ended = db.Column(db.Boolean, default=False, nullable=False)
    current_round = db.Column(db.Integer, default=0, nullable=False)
    # Optimistic concurrency token; bumped by every UPDATE of the row
    version = db.Column(db.Integer, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    category = db.relationship('Category')
    members = db.relationship('RoomMember', back_populates='room', cascade='all, delete-orphan',
                              order_by='RoomMember.username')
    word_queue = db.relationship('RoomWord', back_populates='room', cascade='all, delete-orphan',
                                 order_by='RoomWord.position')

    __mapper_args__ = {'version_id_col': version}

    def touch(self):
        """Mark the room as modified so the commit is checked against its version."""
        self.updated_at = utcnow()

    @property
    def commander(self):
        return next((m for m in self.members if m.role == ROLE_COMMANDER), None)

    def to_dict(self):
        return {
            'room_code': self.room_code,
            'room_name': self.room_name,
            'category': self.category.name if self.category else None,
            'rounds': self.rounds,
            'round_duration': self.round_duration,
            'room_creator': self.room_creator,
            'game_started': self.game_started,
            'current_round': self.current_round,
            'emojis_sent': self.emojis_sent,
            'round_ended': self.round_ended,
            'players': [m.to_dict() for m in self.members],
        }


class RoomMember(db.Model):
    __tablename__ = 'room_member'
    room_code = db.Column(db.String(6), db.ForeignKey('room.room_code', ondelete='CASCADE'), primary_key=True)
    username = db.Column(db.String(32), db.ForeignKey('user.username'), primary_key=True)
    role = db.Column(db.String(9), default=ROLE_PLAYER, nullable=False)
    game_score = db.Column(db.BigInteger, default=0, nullable=False)
    guessed_right = db.Column(db.Boolean, default=False, nullable=False)
    guessed_word = db.Column(db.Text, nullable=True)
    version = db.Column(db.Integer, nullable=False)

    room = db.relationship('Room', back_populates='members')
    user = db.relationship('User', back_populates='membership')

    __table_args__ = (
        # A user belongs to at most one room at a time
        db.UniqueConstraint('username', name='uq_room_member_username'),
    )
    __mapper_args__ = {'version_id_col': version}

    @property
    def is_commander(self):
        return self.role == ROLE_COMMANDER

    def reset_round(self):
        self.role = ROLE_PLAYER
        self.guessed_right = False
        self.guessed_word = None

    def to_dict(self):
        return {
            'username': self.username,
            'role': self.role,
            'game_score': self.game_score,
            'has_guessed': self.guessed_word is not None,
        }


class RoomWord(db.Model):
    __tablename__ = 'room_word'
    id = db.Column(db.Integer, primary_key=True)
    room_code = db.Column(db.String(6), db.ForeignKey('room.room_code', ondelete='CASCADE'), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    text = db.Column(db.String(64), nullable=False)

    room = db.relationship('Room', back_populates='word_queue')
