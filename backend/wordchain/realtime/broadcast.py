from __future__ import annotations

from typing import Any, Protocol

from flask_socketio import SocketIO


GAME_UPDATE = "game_update"
GAME_DELETED = "game_deleted"
ERROR_MESSAGE = "error_message"


class Broadcaster(Protocol):
    def notify(self, game_id: str, state: dict[str, Any]) -> None: ...

    def notify_deleted(self, game_id: str) -> None: ...


class NullBroadcaster:
    """Drops every update; for services with no live subscribers."""

    def notify(self, game_id: str, state: dict[str, Any]) -> None:
        return None

    def notify_deleted(self, game_id: str) -> None:
        return None


class SocketIOBroadcaster:
    """Pushes room state to every socket subscribed to the room's ``game_id`` channel."""

    def __init__(self, socketio: SocketIO):
        self.socketio = socketio

    def notify(self, game_id: str, state: dict[str, Any]) -> None:
        self.socketio.emit(GAME_UPDATE, state, to=game_id)

    def notify_deleted(self, game_id: str) -> None:
        self.socketio.emit(GAME_DELETED, {"gameId": game_id}, to=game_id)
