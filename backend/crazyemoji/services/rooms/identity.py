"""Identity bridge: users, credentials and connection bindings.

A connection id is the Socket.IO session id of the client's live socket.
Room membership is keyed by username, so rebinding the connection on login
lets a client reconnect without leaving its room.
"""

from typing import NamedTuple, Optional

from flask import current_app

from crazyemoji import db
from crazyemoji.errors import (
    Forbidden,
    InvalidConnectionId,
    InvalidPassword,
    InvalidUsername,
    UsernameTaken,
)
from crazyemoji.models import NO_ROOM, User
from .concurrency import conflict_retry
from .validation import validate_password, validate_username


class CurrentUser(NamedTuple):
    username: str
    room_code: str


def resolve_user(connection_id) -> Optional[User]:
    if not connection_id:
        return None
    return User.query.filter_by(connection_id=connection_id).first()


def connection_for(username) -> Optional[str]:
    user = db.session.get(User, username)
    return user.connection_id if user else None


def _bind_connection(user: User, connection_id: str) -> None:
    # connection_id is unique: release it from whichever account held it before
    previous = User.query.filter_by(connection_id=connection_id).first()
    if previous is not None and previous is not user:
        previous.connection_id = None
        db.session.flush()
    user.connection_id = connection_id


def _current(user: User) -> CurrentUser:
    return CurrentUser(user.username, user.membership.room_code if user.membership else NO_ROOM)


@conflict_retry
def create_user(connection_id, username, password) -> str:
    validate_username(username)
    validate_password(password)
    if db.session.get(User, username) is not None:
        raise UsernameTaken()

    user = User(username=username)
    user.set_password(password)
    _bind_connection(user, connection_id)
    db.session.add(user)
    current_app.logger.info(f"[create_user] user={username}")
    return username


@conflict_retry
def login_user(connection_id, username, password) -> CurrentUser:
    user = db.session.get(User, username) if isinstance(username, str) else None
    if user is None:
        raise InvalidUsername('Unknown username')
    if not isinstance(password, str) or not user.check_password(password):
        raise InvalidPassword('Wrong password')

    _bind_connection(user, connection_id)
    current_app.logger.info(f"[login_user] user={username}")
    return _current(user)


def get_current_user_data(connection_id) -> CurrentUser:
    user = resolve_user(connection_id)
    if user is None:
        raise InvalidConnectionId()
    return _current(user)


def get_user_data(target_username, connection_id) -> str:
    """Confirm ``target_username`` shares a room with the caller."""
    caller = resolve_user(connection_id)
    if caller is None or caller.membership is None:
        raise Forbidden()
    target = db.session.get(User, target_username) if isinstance(target_username, str) else None
    if target is None or target.membership is None:
        raise Forbidden()
    if target.membership.room_code != caller.membership.room_code:
        raise Forbidden()
    return target.username
