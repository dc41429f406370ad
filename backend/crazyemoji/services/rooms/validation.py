import re

from flask import current_app

from crazyemoji.errors import (
    IncorrectRoomName,
    IncorrectRoundAmount,
    IncorrectRoundDuration,
    InvalidPassword,
    InvalidUsername,
)

USERNAME_RE = re.compile(r'[A-Za-z0-9_]{3,32}')
PASSWORD_RE = re.compile(r'[A-Za-z0-9@$!%*?&_\-]{8,32}')
ROOM_NAME_RE = re.compile(r'[A-Za-z0-9 _]{3,32}')


def _matches(pattern, value):
    return isinstance(value, str) and pattern.fullmatch(value) is not None


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def validate_username(username):
    if not _matches(USERNAME_RE, username):
        raise InvalidUsername()


def validate_password(password):
    if not _matches(PASSWORD_RE, password):
        raise InvalidPassword()


def validate_room_name(room_name):
    if not _matches(ROOM_NAME_RE, room_name):
        raise IncorrectRoomName()


def validate_rounds(rounds):
    cfg = current_app.config
    low, high = cfg.get('MIN_ROUNDS', 10), cfg.get('MAX_ROUNDS', 30)
    if not _is_int(rounds) or not low <= rounds <= high:
        raise IncorrectRoundAmount(f'Rounds must be between {low} and {high}')


def validate_round_duration(round_duration):
    cfg = current_app.config
    low, high = cfg.get('MIN_ROUND_DURATION_SEC', 15), cfg.get('MAX_ROUND_DURATION_SEC', 45)
    if not _is_int(round_duration) or not low <= round_duration <= high:
        raise IncorrectRoundDuration(f'Round duration must be between {low} and {high} seconds')
