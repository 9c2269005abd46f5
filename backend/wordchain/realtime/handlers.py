from __future__ import annotations

import logging
from threading import RLock
from typing import Any, Callable

from flask import request
from flask_socketio import SocketIO, emit, join_room, leave_room

from ..game.errors import InvalidAction, NotFound, WordChainError
from ..game.service import GameService
from .broadcast import ERROR_MESSAGE, GAME_UPDATE

logger = logging.getLogger(__name__)

SESSIONS_KEY = "wordchain.sessions"


class SocketSessions:
    """sid -> (game_id, player_id) for sockets that joined as a player."""

    def __init__(self):
        self._lock = RLock()
        self._by_sid: dict[str, tuple[str, str]] = {}

    def get(self, sid: str) -> tuple[str, str] | None:
        with self._lock:
            return self._by_sid.get(sid)

    def bind(self, sid: str, game_id: str, player_id: str) -> tuple[str, str] | None:
        """Record the seat for ``sid``; returns the seat it replaced, if any."""
        with self._lock:
            previous = self._by_sid.get(sid)
            self._by_sid[sid] = (game_id, player_id)
        if previous == (game_id, player_id):
            return None
        return previous

    def pop(self, sid: str, game_id: str | None = None) -> tuple[str, str] | None:
        with self._lock:
            session = self._by_sid.get(sid)
            if session is None or (game_id is not None and session[0] != game_id):
                return None
            return self._by_sid.pop(sid)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_sid)


def _game_id_from(payload: dict) -> str:
    game_id = str(payload.get("gameId", "")).strip()
    if not game_id:
        raise InvalidAction("gameId is required.", code="invalid_payload")
    return game_id


def register_socketio_handlers(socketio: SocketIO, service: GameService) -> SocketSessions:
    sessions = SocketSessions()

    def _player_id_from(payload: dict, game_id: str) -> str:
        player_id = str(payload.get("playerId", "") or "").strip()
        if player_id:
            return player_id
        session = sessions.get(request.sid)
        if session and session[0] == game_id:
            return session[1]
        return ""

    def _release_seat(game_id: str, player_id: str) -> None:
        try:
            service.leave_game(game_id, player_id)
        except NotFound:
            return
        except Exception:
            logger.exception("Failed to remove %s from room %s", player_id, game_id)

    def _run(action: str, fn: Callable[[], dict[str, Any]]) -> dict[str, Any]:
        try:
            result = fn()
        except WordChainError as exc:
            logger.debug("Socket %s rejected %s: %s", request.sid, action, exc.code)
            body = exc.to_dict()
            emit(ERROR_MESSAGE, body)
            return {"ok": False, **body}
        except Exception:
            logger.exception("Socket %s failed %s", request.sid, action)
            body = {"error": "internal_error", "message": "Internal Server Error"}
            emit(ERROR_MESSAGE, body)
            return {"ok": False, **body}
        return {"ok": True, **result}

    @socketio.on("join_game")
    def on_join_game(data):
        payload = data or {}

        def _join() -> dict[str, Any]:
            game_id = _game_id_from(payload)
            state = service.join_game(game_id, payload.get("name"))
            join_room(game_id)
            previous = sessions.bind(request.sid, game_id, state["playerId"])
            if previous:
                # One seat per socket: give up the seat this socket held before.
                prev_game_id, prev_player_id = previous
                if prev_game_id != game_id:
                    leave_room(prev_game_id)
                _release_seat(prev_game_id, prev_player_id)
                state = service.get_state(game_id) | {"playerId": state["playerId"]}
            # The join broadcast went out before this socket entered the channel.
            emit(GAME_UPDATE, {k: v for k, v in state.items() if k != "playerId"})
            return state

        return _run("join_game", _join)

    @socketio.on("watch_game")
    def on_watch_game(data):
        payload = data or {}

        def _watch() -> dict[str, Any]:
            game_id = _game_id_from(payload)
            state = service.get_state(game_id)
            join_room(game_id)
            emit(GAME_UPDATE, state)
            return state

        return _run("watch_game", _watch)

    @socketio.on("start_game")
    def on_start_game(data):
        payload = data or {}

        def _start() -> dict[str, Any]:
            game_id = _game_id_from(payload)
            return service.start_game(game_id, _player_id_from(payload, game_id))

        return _run("start_game", _start)

    @socketio.on("submit_word")
    def on_submit_word(data):
        payload = data or {}

        def _submit() -> dict[str, Any]:
            game_id = _game_id_from(payload)
            return service.submit_word(game_id, _player_id_from(payload, game_id), payload.get("word"))

        return _run("submit_word", _submit)

    @socketio.on("timeout")
    def on_timeout(data):
        payload = data or {}

        def _timeout() -> dict[str, Any]:
            game_id = _game_id_from(payload)
            return service.timeout(game_id, _player_id_from(payload, game_id) or None)

        return _run("timeout", _timeout)

    @socketio.on("leave_game")
    def on_leave_game(data):
        payload = data or {}

        def _leave() -> dict[str, Any]:
            game_id = _game_id_from(payload)
            player_id = _player_id_from(payload, game_id)
            leave_room(game_id)
            sessions.pop(request.sid, game_id)
            return service.leave_game(game_id, player_id)

        return _run("leave_game", _leave)

    @socketio.on("disconnect")
    def on_disconnect(*_args):
        session = sessions.pop(request.sid)
        if session:
            _release_seat(*session)

    return sessions
