# rook_server/errors.py
"""Rejections of player intents.

Every rejection is raised before any state is touched, so catching one
leaves the table exactly as it was. `code` is stable and sent to clients
alongside the human-readable message.
"""
from __future__ import annotations


class RookError(Exception):
    code = "rook-error"
    default_message = "That action is not allowed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class IllegalTurn(RookError):
    code = "illegal-turn"
    default_message = "It is not your turn."


class AlreadyPassed(RookError):
    code = "already-passed"
    default_message = "You have already passed."


class AlreadyPlayedThisTrick(RookError):
    code = "already-played"
    default_message = "You have already played a card in this trick."


class InvalidAmount(RookError):
    code = "invalid-amount"


class InvalidColor(RookError):
    code = "invalid-color"
    default_message = "Invalid trump color."


class WrongCount(RookError):
    code = "wrong-count"


class NotInHand(RookError):
    code = "not-in-hand"
    default_message = "You do not have that card."


class Unauthorized(RookError):
    code = "unauthorized"


class AlreadySelected(RookError):
    code = "already-selected"
    default_message = "Trump has already been selected."


class MustFollowSuit(RookError):
    code = "must-follow-suit"
    default_message = "You must follow suit if able."


class WrongPhase(RookError):
    code = "wrong-phase"


class RoomNotFound(RookError):
    code = "room-not-found"
    default_message = "Room not found."


class RoomFull(RookError):
    code = "room-full"
    default_message = "Room is full."


class GameAlreadyStarted(RookError):
    code = "game-already-started"
    default_message = "Game has already started."


class NotReady(RookError):
    code = "not-ready"


class MalformedIntent(RookError):
    code = "malformed-intent"
    default_message = "Could not understand that request."
