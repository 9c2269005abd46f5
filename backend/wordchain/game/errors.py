"""
Game errors.

Every rejection the state machine or service can produce is one of these, so
the HTTP blueprint and the Socket.IO handlers can report them the same way.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .words import WordRejection, rejection_message

if TYPE_CHECKING:
    from .models import Room


class WordChainError(Exception):
    """Base class for all game errors."""

    status = 400
    code = "error"
    default_message = "Request failed."

    def __init__(self, message: str | None = None, code: str | None = None):
        if code:
            self.code = code
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message}


class NotFound(WordChainError):
    status = 404
    code = "room_not_found"
    default_message = "Game not found"

    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found")


class Forbidden(WordChainError):
    """Wrong player acting, non-host starting, or room full."""

    status = 403
    code = "forbidden"
    default_message = "Forbidden."


class InvalidWord(WordChainError):
    code = "invalid_word"

    def __init__(self, reason: WordRejection, min_length: int):
        self.reason = reason
        super().__init__(rejection_message(reason, min_length))

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["reason"] = self.reason.value
        return payload


class TurnExpired(WordChainError):
    """Raised after the room has been moved to round-over; ``room`` holds that state."""

    code = "turn_expired"

    def __init__(self, room: Room, turn_duration_sec: int):
        self.room = room
        super().__init__(f"Time is up! ({turn_duration_sec} seconds)")


class InvalidAction(WordChainError):
    code = "invalid_action"
    default_message = "Invalid action"
