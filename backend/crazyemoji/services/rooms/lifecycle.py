"""Room lifecycle: create, join, leave and start.

All mutating operations touch the room row so that concurrent changes to
the same room are serialized by its version column (see ``concurrency``).
"""

import random
import string
from typing import List, NamedTuple, Tuple

from flask import current_app

from crazyemoji import db
from crazyemoji.errors import (
    Forbidden,
    IncorrectRoomCategory,
    IncorrectRoomCode,
    JoinedDifferentRoom,
    NotEnoughPlayers,
    RoomGameStarted,
)
from crazyemoji.models import ROLE_PLAYER, Room, RoomMember, User
from . import words
from .concurrency import conflict_retry
from .identity import resolve_user
from .validation import validate_room_name, validate_round_duration, validate_rounds

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits

_rng = random.SystemRandom()


class RoomInfo(NamedTuple):
    username: str
    room_code: str
    room_name: str
    category: str
    rounds: int
    round_duration: int
    room_creator: str
    players: List[str]

    def to_dict(self):
        return {
            'username': self.username,
            'roomCode': self.room_code,
            'roomName': self.room_name,
            'category': self.category,
            'rounds': self.rounds,
            'roundDuration': self.round_duration,
            'roomCreator': self.room_creator,
            'players': list(self.players),
        }


class LeaveResult(NamedTuple):
    username: str
    room_code: str
    is_game_ended: bool


def _min_players():
    return int(current_app.config.get('MIN_PLAYERS', 3))


def generate_room_code(length=None):
    """Generate a unique, short room code."""
    length = length or int(current_app.config.get('ROOM_CODE_LENGTH', 6))
    max_attempts = int(current_app.config.get('ROOM_CODE_MAX_ATTEMPTS', 100))
    for _ in range(max_attempts):
        code = ''.join(_rng.choice(ROOM_CODE_ALPHABET) for _ in range(length))
        if db.session.get(Room, code) is None:
            return code
    raise RuntimeError(f'Unable to generate a unique room code after {max_attempts} attempts')


def normalize_room_code(room_code):
    return room_code.strip().upper() if isinstance(room_code, str) else None


def caller_membership(connection_id) -> Tuple[User, RoomMember, Room]:
    """Resolve the caller to its user, membership and room, or fail with Forbidden."""
    user = resolve_user(connection_id)
    if user is None:
        raise Forbidden('Connection is not bound to a user')
    member = user.membership
    if member is None or member.room is None:
        raise Forbidden('Not a member of any room')
    return user, member, member.room


def _room_info(user: User, room: Room) -> RoomInfo:
    return RoomInfo(
        username=user.username,
        room_code=room.room_code,
        room_name=room.room_name,
        category=room.category.name if room.category else None,
        rounds=room.rounds,
        round_duration=room.round_duration,
        room_creator=room.room_creator,
        players=sorted(m.username for m in room.members),
    )


@conflict_retry
def create_room(connection_id, room_name, category_name, rounds, round_duration) -> str:
    user = resolve_user(connection_id)
    if user is None:
        raise Forbidden('Connection is not bound to a user')
    if user.membership is not None:
        raise JoinedDifferentRoom()

    validate_room_name(room_name)
    category = words.find_category(category_name)
    if category is None:
        raise IncorrectRoomCategory()
    validate_rounds(rounds)
    validate_round_duration(round_duration)

    code = generate_room_code()
    room = Room(
        room_code=code,
        room_name=room_name,
        category_id=category.id,
        rounds=rounds,
        round_duration=round_duration,
        room_creator=user.username,
        game_started=False,
        emojis_sent=False,
        round_ended=False,
        current_round=0,
    )
    db.session.add(room)
    db.session.add(RoomMember(room=room, user=user, role=ROLE_PLAYER, game_score=0, guessed_right=False))
    db.session.flush()

    words.preload(code, category.id, rounds)
    current_app.logger.info(
        f"[create_room] room={code} creator={user.username} category={category.name} rounds={rounds} duration={round_duration}"
    )
    return code


@conflict_retry
def join_room(connection_id, room_code) -> RoomInfo:
    user = resolve_user(connection_id)
    if user is None:
        raise Forbidden('Connection is not bound to a user')

    code = normalize_room_code(room_code)
    membership = user.membership
    if membership is not None:
        # Re-joining the same room is a re-query, e.g. after a reconnect
        if membership.room_code == code and membership.room is not None:
            return _room_info(user, membership.room)
        raise JoinedDifferentRoom()

    room = db.session.get(Room, code) if code else None
    if room is None:
        raise IncorrectRoomCode()
    if room.game_started:
        raise RoomGameStarted()

    db.session.add(RoomMember(room=room, user=user, role=ROLE_PLAYER, game_score=0, guessed_right=False))
    room.touch()
    current_app.logger.info(f"[join_room] room={room.room_code} user={user.username} members={len(room.members)}")
    return _room_info(user, room)


@conflict_retry
def left_room(connection_id) -> LeaveResult:
    user = resolve_user(connection_id)
    member = user.membership if user is not None else None
    if member is None:
        raise Forbidden('Not a member of any room')

    code = member.room_code
    room = member.room
    if room is None:
        db.session.delete(member)
        return LeaveResult(user.username, code, True)

    room.members.remove(member)
    remaining = len(room.members)

    ended = False
    if user.username == room.room_creator and not room.game_started:
        ended = True
    elif room.game_started and remaining < _min_players():
        ended = True

    if ended:
        db.session.delete(room)
    else:
        room.touch()
    current_app.logger.info(
        f"[left_room] room={code} user={user.username} remaining={remaining} game_ended={ended}"
    )
    return LeaveResult(user.username, code, ended)


@conflict_retry
def start_game(connection_id) -> str:
    user, _, room = caller_membership(connection_id)
    if room.room_creator != user.username:
        raise Forbidden('Only the room creator can start the game')
    if room.game_started:
        raise RoomGameStarted()
    if len(room.members) < _min_players():
        raise NotEnoughPlayers(f'At least {_min_players()} players are required to start')

    room.game_started = True
    room.touch()
    current_app.logger.info(f"[start_game] room={room.room_code} players={len(room.members)}")
    return room.room_code


def room_state(room_code):
    """Public lobby state of a room, without the secret word."""
    code = normalize_room_code(room_code)
    room = db.session.get(Room, code) if code else None
    if room is None:
        raise IncorrectRoomCode()
    return room.to_dict()
