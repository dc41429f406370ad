from typing import List, NamedTuple, Optional

from flask import current_app

from crazyemoji.models import RoomMember


class ResultRow(NamedTuple):
    username: str
    guessed_right: bool
    guessed_word: Optional[str]
    game_score: int

    def to_dict(self):
        return {
            'username': self.username,
            'guessedRight': self.guessed_right,
            'guessedWord': self.guessed_word,
            'gameScore': self.game_score,
        }


def _simple_upper(text: str) -> str:
    # One character in, one character out: 'ß' stays 'ß' instead of becoming 'SS'
    return ''.join(ch if len(ch.upper()) != 1 else ch.upper() for ch in text)


def is_correct_guess(guess: str, round_word: Optional[str]) -> bool:
    """Ordinal case-insensitive comparison of a guess against the round word."""
    if round_word is None:
        return False
    return len(guess) == len(round_word) and _simple_upper(guess) == _simple_upper(round_word)


def record_guess(member: RoomMember, guess: str, round_word: str) -> bool:
    """Store the guess verbatim and award points when it is right."""
    correct = is_correct_guess(guess, round_word)
    member.guessed_word = guess
    member.guessed_right = correct
    if correct:
        member.game_score = (member.game_score or 0) + int(current_app.config.get('CORRECT_GUESS_POINTS', 100))
    return correct


def leaderboard(members: List[RoomMember]) -> List[ResultRow]:
    """Score descending, username ascending on ties."""
    rows = [
        ResultRow(m.username, bool(m.guessed_right), m.guessed_word, int(m.game_score or 0))
        for m in members
    ]
    return sorted(rows, key=lambda r: (-r.game_score, r.username))
