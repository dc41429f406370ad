import functools

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room, rooms

from crazyemoji import db, socketio
from crazyemoji.broadcast import (
    NAMESPACE,
    close_group,
    remove_from_group,
    send_to_group,
    send_to_group_except,
    send_to_one,
)
from crazyemoji.errors import (
    ErrorCode,
    IncorrectUsernamePassword,
    InvalidPassword,
    InvalidPayload,
    InvalidUsername,
    RoomError,
    new_correlation_id,
)
from crazyemoji.models import NO_ROOM
from crazyemoji.services.rooms import identity, lifecycle, rounds

ERROR_EVENT = 'Error'


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload(data) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidPayload('Payload must be an object')
    return data


def _field(data: dict, key: str, kind=str):
    value = data.get(key)
    if value is not None and not isinstance(value, kind):
        raise InvalidPayload(f'{key} has the wrong type')
    return value


def _command(name):
    """Turn failures of a command handler into a single ``Error`` event to the caller."""

    def decorator(handler):
        @functools.wraps(handler)
        def wrapper(data=None):
            try:
                return handler(data)
            except RoomError as exc:
                db.session.rollback()
                current_app.logger.info(f"[command] name={name} sid={_get_sid()} code={exc.code.value}")
                emit(ERROR_EVENT, exc.to_payload(name))
            except Exception:
                db.session.rollback()
                correlation_id = new_correlation_id()
                current_app.logger.exception(
                    f"[unexpected] command={name} sid={_get_sid()} correlation_id={correlation_id}"
                )
                emit(ERROR_EVENT, {
                    'code': ErrorCode.INTERNAL_ERROR.value,
                    'message': 'An unexpected error occurred.',
                    'command': name,
                    'correlation_id': correlation_id,
                })

        return wrapper

    return decorator


def handle_connect(auth=None):
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_disconnect(reason=None):
    # Membership is keyed by username and survives reconnects; nothing to clean up
    current_app.logger.info(f"[disconnect] sid={_get_sid()}")


def handle_ping(data=None):
    emit('pong', data or {})


@_command('createUser')
def handle_create_user(data):
    data = _payload(data)
    username = identity.create_user(_get_sid(), data.get('username'), data.get('password'))
    emit('createdUser', username)


@_command('loginUser')
def handle_login_user(data):
    data = _payload(data)
    username = data.get('username')
    previous_sid = identity.connection_for(username) if isinstance(username, str) else None
    try:
        current = identity.login_user(_get_sid(), username, data.get('password'))
    except (InvalidUsername, InvalidPassword):
        raise IncorrectUsernamePassword() from None

    sid = _get_sid()
    for group in rooms():
        if group not in (sid, current.room_code):
            leave_room(group)
    if current.room_code != NO_ROOM:
        join_room(current.room_code)
        # The connection this user was bound to before no longer speaks for it
        if previous_sid and previous_sid != sid:
            remove_from_group(previous_sid, current.room_code)
    emit('userLoggedIn', current.username)


@_command('getCurrentUserData')
def handle_get_current_user_data(data=None):
    current = identity.get_current_user_data(_get_sid())
    emit('currentUserData', {'username': current.username, 'roomCode': current.room_code})


@_command('getUserData')
def handle_get_user_data(data):
    data = _payload(data)
    username = identity.get_user_data(_field(data, 'username'), _get_sid())
    emit('userData', username)


@_command('createRoom')
def handle_create_room(data):
    data = _payload(data)
    room_code = lifecycle.create_room(
        _get_sid(),
        _field(data, 'roomName'),
        _field(data, 'category'),
        _field(data, 'rounds', int),
        _field(data, 'roundDuration', int),
    )
    join_room(room_code)
    emit('createdRoom', room_code)


@_command('joinRoom')
def handle_join_room(data):
    data = _payload(data)
    info = lifecycle.join_room(_get_sid(), _field(data, 'roomCode'))
    join_room(info.room_code)
    emit('joinedRoom', info.to_dict())
    send_to_group_except(info.room_code, _get_sid(), 'playerJoined', info.username)


@_command('leftRoom')
def handle_left_room(data=None):
    result = lifecycle.left_room(_get_sid())
    if result.is_game_ended:
        send_to_group(result.room_code, 'gameEnded', result.room_code)
        close_group(result.room_code)
    else:
        send_to_group(result.room_code, 'playerLeft', result.username)
        leave_room(result.room_code)


@_command('startGame')
def handle_start_game(data=None):
    room_code = lifecycle.start_game(_get_sid())
    send_to_group(room_code, 'gameStarted', room_code)


@_command('getCommander')
def handle_get_commander(data=None):
    choice = rounds.get_commander(_get_sid())
    commander_sid = identity.connection_for(choice.username)
    if choice.repeated:
        event = 'commanderSelected' if commander_sid == _get_sid() else 'commanderAnnounced'
        emit(event, choice.username)
        return
    send_to_one(commander_sid, 'commanderSelected', choice.username)
    send_to_group_except(choice.room_code, commander_sid, 'commanderAnnounced', choice.username)


@_command('getWord')
def handle_get_word(data=None):
    word = rounds.get_word(_get_sid())
    emit('recivedWord', word)


@_command('sendEmojis')
def handle_send_emojis(data):
    data = _payload(data)
    if 'emojis' not in data:
        raise InvalidPayload('emojis is required')
    room_code = rounds.send_emojis(_get_sid())
    emit('emojisRecieved', room_code)
    send_to_group_except(room_code, _get_sid(), 'recieveEmojis', data['emojis'])


@_command('checkWord')
def handle_check_word(data):
    data = _payload(data)
    result = rounds.check_word(_get_sid(), data.get('word'))
    emit('wordChecked', result.is_correct)


@_command('getResults')
def handle_get_results(data=None):
    outcome = rounds.get_results(_get_sid())
    if outcome.repeated:
        emit('roundEnded', outcome.to_dict())
        return
    send_to_group(outcome.room_code, 'roundEnded', outcome.to_dict())
    if outcome.next_round:
        send_to_group(outcome.room_code, 'roundStarted', {
            'roomCode': outcome.room_code,
            'round': outcome.round + 1,
        })


COMMANDS = {
    'createUser': handle_create_user,
    'loginUser': handle_login_user,
    'getCurrentUserData': handle_get_current_user_data,
    'getUserData': handle_get_user_data,
    'createRoom': handle_create_room,
    'joinRoom': handle_join_room,
    'leftRoom': handle_left_room,
    'startGame': handle_start_game,
    'getCommander': handle_get_commander,
    'getWord': handle_get_word,
    'sendEmojis': handle_send_emojis,
    'checkWord': handle_check_word,
    'getResults': handle_get_results,
}


def register_socketio_handlers() -> None:
    """Register the connection lifecycle and every room command on the '/ws' namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
    for event, handler in COMMANDS.items():
        socketio.on_event(event, handler, namespace=NAMESPACE)
