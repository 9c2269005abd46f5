from __future__ import annotations

import logging
import time
from typing import Any, Callable

from flask import current_app

from ..realtime.broadcast import Broadcaster, NullBroadcaster
from .errors import InvalidAction, NotFound, TurnExpired
from .machine import RoomRules, RoomStateMachine
from .models import Room
from .store import MemoryRoomStore

logger = logging.getLogger(__name__)

EXTENSION_KEY = "wordchain"

ACTIONS = ("join_game", "start_game", "submit_word", "timeout", "leave_game")


def now_ms() -> int:
    return int(time.time() * 1000)


def validate_name(name: str) -> bool:
    n = (name or "").strip()
    if not n:
        return False
    if len(n) > 16:
        return False
    if "<" in n or ">" in n:
        return False
    for ch in n:
        if ord(ch) < 32:
            return False
    return True


def room_public_state(room: Room, machine: RoomStateMachine) -> dict:
    current = room.current_player if room.players else None
    return {
        "gameId": room.game_id,
        "players": [{"id": p.id, "name": p.name} for p in room.players],
        "words": list(room.words),
        "lastWord": room.last_word,
        "currentPlayerIndex": room.current_player_index,
        "currentPlayerId": current.id if current else None,
        "isStarted": room.is_started,
        "isGameOver": room.is_game_over,
        "phase": room.phase,
        "hostId": room.host_id,
        "turnStartedAt": room.turn_started_at_ms,
        "turnDurationSec": machine.rules.turn_duration_sec,
        "loserId": machine.loser_id(room),
        "history": [
            {
                "words": list(h.words),
                "losingPlayerId": h.losing_player_id,
                "startedAt": h.started_at_ms,
                "endedAt": h.ended_at_ms,
            }
            for h in room.history
        ],
        "createdAt": room.created_at_ms,
        "updatedAt": room.updated_at_ms,
    }


class GameService:
    """Runs actions against stored rooms: lock -> load -> apply -> save -> notify."""

    def __init__(
        self,
        store: MemoryRoomStore,
        broadcaster: Broadcaster | None = None,
        machine: RoomStateMachine | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.broadcaster = broadcaster or NullBroadcaster()
        self.machine = machine or RoomStateMachine()
        self.clock = clock

    @classmethod
    def from_config(cls, config, broadcaster: Broadcaster | None = None) -> "GameService":
        return cls(
            store=MemoryRoomStore(),
            broadcaster=broadcaster,
            machine=RoomStateMachine(RoomRules.from_config(config)),
        )

    def close(self) -> None:
        self.store.close()

    def public_state(self, room: Room) -> dict:
        return room_public_state(room, self.machine)

    def get_state(self, game_id: str) -> dict:
        room = self.store.load(game_id)
        if room is None:
            raise NotFound(game_id)
        return self.public_state(room)

    def handle_action(self, game_id: str, action: str, payload: dict | None) -> dict:
        if action not in ACTIONS:
            raise InvalidAction("Invalid action")
        payload = payload if isinstance(payload, dict) else {}
        handler = getattr(self, action)
        if action == "join_game":
            return handler(game_id, payload.get("name"))
        if action == "submit_word":
            return handler(game_id, payload.get("playerId"), payload.get("word"))
        return handler(game_id, payload.get("playerId"))

    def join_game(self, game_id: str, name: Any) -> dict:
        name = str(name or "").strip()
        if not validate_name(name):
            raise InvalidAction("A valid player name is required.", code="invalid_payload")

        with self.store.lock(game_id):
            room = self.store.load(game_id)
            result = self.machine.join(game_id, room, name, self.clock())
            if not result.rejoined:
                self.store.save(result.room)
                self._notify(result.room)

        state = self.public_state(result.room)
        state["playerId"] = result.player.id
        return state

    def start_game(self, game_id: str, player_id: Any) -> dict:
        with self.store.lock(game_id):
            room = self._load(game_id)
            self.machine.start(room, str(player_id or ""), self.clock())
            self.store.save(room)
            self._notify(room)
        return self.public_state(room)

    def submit_word(self, game_id: str, player_id: Any, word: Any) -> dict:
        word = str(word or "").strip()
        with self.store.lock(game_id):
            room = self._load(game_id)
            try:
                self.machine.submit_word(room, str(player_id or ""), word, self.clock())
            except TurnExpired as exc:
                self.store.save(exc.room)
                self._notify(exc.room)
                raise
            self.store.save(room)
            self._notify(room)
        return self.public_state(room)

    def timeout(self, game_id: str, player_id: Any = None) -> dict:
        with self.store.lock(game_id):
            room = self._load(game_id)
            self.machine.timeout(room, player_id, self.clock())
            self.store.save(room)
            self._notify(room)
        return self.public_state(room)

    def leave_game(self, game_id: str, player_id: Any) -> dict:
        with self.store.lock(game_id):
            room = self._load(game_id)
            empty = self.machine.leave(room, str(player_id or ""), self.clock())
            if empty:
                self.store.delete(game_id)
                self._notify_deleted(game_id)
                return {"gameId": game_id, "deleted": True, "message": "Game deleted"}
            self.store.save(room)
            self._notify(room)
        return self.public_state(room)

    def _load(self, game_id: str) -> Room:
        room = self.store.load(game_id)
        if room is None:
            raise NotFound(game_id)
        return room

    def _notify(self, room: Room) -> None:
        try:
            self.broadcaster.notify(room.game_id, self.public_state(room))
        except Exception:
            logger.warning("Broadcast failed for room %s", room.game_id, exc_info=True)

    def _notify_deleted(self, game_id: str) -> None:
        try:
            self.broadcaster.notify_deleted(game_id)
        except Exception:
            logger.warning("Broadcast failed for deleted room %s", game_id, exc_info=True)


def get_service() -> GameService:
    return current_app.extensions[EXTENSION_KEY]
