"""Error taxonomy for room operations.

Services raise ``RoomError`` subclasses; the Socket.IO command surface turns
them into a single ``Error`` event carrying the code. Anything that is not a
``RoomError`` is unexpected and is reported with a correlation id instead.
"""

import uuid
from enum import Enum
from typing import Dict, Optional

from flask import g, jsonify, request
from werkzeug.exceptions import HTTPException

CORRELATION_ID_HEADER = 'Correlation-Id'

VALIDATION = 'validation'
AUTHORIZATION = 'authorization'
CONFLICT = 'conflict'
RESOURCE = 'resource'
UNEXPECTED = 'unexpected'


class ErrorCode(Enum):
    INCORRECT_USERNAME = 'INCORRECT_USERNAME'
    INCORRECT_PASSWORD = 'INCORRECT_PASSWORD'
    USERNAME_TAKEN = 'USERNAME_TAKEN'
    INCORRECT_USERNAME_PASSWORD = 'INCORRECT_USERNAME_PASSWORD'
    INCORRECT_CONNECTION_ID = 'INCORRECT_CONNECTION_ID'
    FORBIDDEN = 'FORBIDDEN'
    JOINED_DIFFERENT_ROOM = 'JOINED_DIFFERENT_ROOM'
    INCORRECT_ROOM_NAME = 'INCORRECT_ROOM_NAME'
    INCORRECT_ROOM_CATEGORY = 'INCORRECT_ROOM_CATEGORY'
    INCORRECT_ROUND_AMOUNT = 'INCORRECT_ROUND_AMOUNT'
    INCORRECT_ROUND_DURATION = 'INCORRECT_ROUND_DURATION'
    INCORRECT_ROOM_CODE = 'INCORRECT_ROOM_CODE'
    ROOM_GAME_STARTED = 'ROOM_GAME_STARTED'
    NOT_ENOUGH_PLAYERS = 'NOT_ENOUGH_PLAYERS'
    NO_WORDS_AVAILABLE = 'NO_WORDS_AVAILABLE'
    CONFLICT = 'CONFLICT'
    INVALID_DATA = 'INVALID_DATA'
    INTERNAL_ERROR = 'INTERNAL_ERROR'


class RoomError(Exception):
    """Base class for expected failures of room operations."""

    code = ErrorCode.INTERNAL_ERROR
    category = UNEXPECTED
    default_message = 'Request failed'
    retryable = False

    def __init__(self, message: Optional[str] = None, details: Optional[Dict] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_payload(self, command: Optional[str] = None) -> Dict:
        payload = {'code': self.code.value, 'message': self.message}
        if command:
            payload['command'] = command
        if self.retryable:
            payload['retryable'] = True
        return payload


# Validation

class InvalidUsername(RoomError):
    code = ErrorCode.INCORRECT_USERNAME
    category = VALIDATION
    default_message = 'Username must be 3-32 characters of letters, digits or underscore'


class InvalidPassword(RoomError):
    code = ErrorCode.INCORRECT_PASSWORD
    category = VALIDATION
    default_message = 'Password must be 8-32 characters of letters, digits or @$!%*?&_-'


class IncorrectRoomName(RoomError):
    code = ErrorCode.INCORRECT_ROOM_NAME
    category = VALIDATION
    default_message = 'Room name must be 3-32 characters of letters, digits, spaces or underscore'


class IncorrectRoomCategory(RoomError):
    code = ErrorCode.INCORRECT_ROOM_CATEGORY
    category = VALIDATION
    default_message = 'Unknown category'


class IncorrectRoundAmount(RoomError):
    code = ErrorCode.INCORRECT_ROUND_AMOUNT
    category = VALIDATION
    default_message = 'Round amount out of range'


class IncorrectRoundDuration(RoomError):
    code = ErrorCode.INCORRECT_ROUND_DURATION
    category = VALIDATION
    default_message = 'Round duration out of range'


class InvalidPayload(RoomError):
    code = ErrorCode.INVALID_DATA
    category = VALIDATION
    default_message = 'Malformed request payload'


# Authorization / phase

class Forbidden(RoomError):
    code = ErrorCode.FORBIDDEN
    category = AUTHORIZATION
    default_message = 'Operation not allowed right now'


class InvalidConnectionId(RoomError):
    code = ErrorCode.INCORRECT_CONNECTION_ID
    category = AUTHORIZATION
    default_message = 'Connection is not bound to a user'


class IncorrectUsernamePassword(RoomError):
    code = ErrorCode.INCORRECT_USERNAME_PASSWORD
    category = AUTHORIZATION
    default_message = 'Invalid username or password'


# Conflict

class UsernameTaken(RoomError):
    code = ErrorCode.USERNAME_TAKEN
    category = CONFLICT
    default_message = 'Username already exists'


class JoinedDifferentRoom(RoomError):
    code = ErrorCode.JOINED_DIFFERENT_ROOM
    category = CONFLICT
    default_message = 'Already a member of another room'


class RoomGameStarted(RoomError):
    code = ErrorCode.ROOM_GAME_STARTED
    category = CONFLICT
    default_message = 'The game in this room has already started'


class NotEnoughPlayers(RoomError):
    code = ErrorCode.NOT_ENOUGH_PLAYERS
    category = CONFLICT
    default_message = 'Not enough players to start the game'


class Conflict(RoomError):
    """Lost an optimistic concurrency race on every attempt."""

    code = ErrorCode.CONFLICT
    category = CONFLICT
    default_message = 'The room changed concurrently, try again'
    retryable = True


# Resource

class IncorrectRoomCode(RoomError):
    code = ErrorCode.INCORRECT_ROOM_CODE
    category = RESOURCE
    default_message = 'Room not found'


class NoWordsAvailable(RoomError):
    code = ErrorCode.NO_WORDS_AVAILABLE
    category = RESOURCE
    default_message = 'No words available'


def new_correlation_id() -> str:
    return uuid.uuid4().hex


def register_error_handlers(flask_app):
    """Correlation ids on every HTTP response and a JSON 500 for anything uncaught."""

    @flask_app.before_request
    def _assign_correlation_id():
        g.correlation_id = request.headers.get(CORRELATION_ID_HEADER) or new_correlation_id()

    @flask_app.after_request
    def _echo_correlation_id(response):
        correlation_id = g.get('correlation_id')
        if correlation_id:
            response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response

    @flask_app.errorhandler(Exception)
    def _handle_unexpected(exc):
        if isinstance(exc, HTTPException):
            return jsonify({'error': exc.description}), exc.code
        from crazyemoji import db
        db.session.rollback()
        correlation_id = g.get('correlation_id') or new_correlation_id()
        flask_app.logger.exception(f"[unexpected] path={request.path} correlation_id={correlation_id}")
        return jsonify({'error': 'An unexpected error occurred.', 'correlation_id': correlation_id}), 500
