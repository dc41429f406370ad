"""Round flow: commander selection, word, emojis, guesses and results."""

import random
from typing import List, NamedTuple

from flask import current_app

from crazyemoji.errors import Forbidden, InvalidPayload
from crazyemoji.models import ROLE_COMMANDER, utcnow
from . import words
from .concurrency import conflict_retry
from .lifecycle import caller_membership
from .scoring import ResultRow, leaderboard, record_guess

_rng = random.SystemRandom()


class CommanderChoice(NamedTuple):
    username: str
    room_code: str
    # True when the commander had already been chosen by an earlier call
    repeated: bool = False


class GuessResult(NamedTuple):
    is_correct: bool
    room_code: str


class RoundResults(NamedTuple):
    results: List[ResultRow]
    next_round: bool
    room_code: str
    round: int
    # True when the round had already been ended by an earlier call
    repeated: bool = False

    def to_dict(self):
        return {
            'results': [row.to_dict() for row in self.results],
            'nextRound': self.next_round,
        }


def _require_started(room):
    if not room.game_started:
        raise Forbidden('The game has not started')


@conflict_retry
def get_commander(connection_id) -> CommanderChoice:
    """Return the round's commander, choosing one at random when there is none."""
    _, _, room = caller_membership(connection_id)
    _require_started(room)

    commander = room.commander
    if commander is not None:
        return CommanderChoice(commander.username, room.room_code, repeated=True)
    if room.current_round >= room.rounds:
        raise Forbidden('No rounds left in this game')

    members = list(room.members)
    chosen = _rng.choice(members)
    for member in members:
        member.reset_round()
    chosen.role = ROLE_COMMANDER

    room.round_word = None
    room.emojis_sent = False
    room.emojis_sent_time = None
    room.round_ended = False
    room.current_round += 1
    room.touch()
    current_app.logger.info(
        f"[round] room={room.room_code} round={room.current_round}/{room.rounds} commander={chosen.username}"
    )
    return CommanderChoice(chosen.username, room.room_code)


@conflict_retry
def get_word(connection_id) -> str:
    _, member, room = caller_membership(connection_id)
    _require_started(room)
    if not member.is_commander:
        raise Forbidden('Only the commander can get the word')

    if room.round_word:
        return room.round_word
    room.round_word = words.dequeue(room.room_code)
    room.touch()
    return room.round_word


@conflict_retry
def send_emojis(connection_id) -> str:
    _, member, room = caller_membership(connection_id)
    _require_started(room)
    if not member.is_commander:
        raise Forbidden('Only the commander can send emojis')

    room.emojis_sent = True
    room.emojis_sent_time = utcnow()
    room.touch()
    current_app.logger.info(f"[round] room={room.room_code} round={room.current_round} emojis_sent")
    return room.room_code


@conflict_retry
def check_word(connection_id, guess) -> GuessResult:
    if not isinstance(guess, str):
        raise InvalidPayload('word must be a string')
    _, member, room = caller_membership(connection_id)
    _require_started(room)
    if member.is_commander:
        raise Forbidden('The commander cannot guess')
    if not room.emojis_sent or room.round_ended or room.round_word is None:
        raise Forbidden('Guessing is not open')
    if member.guessed_word is not None:
        raise Forbidden('Already guessed this round')

    correct = record_guess(member, guess, room.round_word)
    room.touch()
    current_app.logger.info(f"[guess] room={room.room_code} user={member.username} correct={correct}")
    return GuessResult(correct, room.room_code)


@conflict_retry
def get_results(connection_id) -> RoundResults:
    """End the round and return the leaderboard.

    The leaderboard is a snapshot taken before round state is reset. Once
    the round has ended, repeated calls return the current leaderboard
    without changing anything.
    """
    _, _, room = caller_membership(connection_id)
    _require_started(room)
    members = list(room.members)
    next_round = room.current_round < room.rounds

    if room.round_ended:
        return RoundResults(leaderboard(members), next_round, room.room_code, room.current_round, repeated=True)

    pending = [m.username for m in members if not m.is_commander and m.guessed_word is None]
    if pending:
        raise Forbidden('Not every player has guessed yet')

    results = leaderboard(members)
    for member in members:
        member.reset_round()
    room.round_word = None
    room.round_ended = True
    room.touch()
    current_app.logger.info(
        f"[round] room={room.room_code} round={room.current_round} ended next_round={next_round}"
    )
    return RoundResults(results, next_round, room.room_code, room.current_round)
