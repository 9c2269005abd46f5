from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Iterator

from .models import Room, room_from_document, room_to_document

logger = logging.getLogger(__name__)


@dataclass
class _RoomLock:
    lock: RLock = field(default_factory=RLock)
    users: int = 0


class MemoryRoomStore:
    """Process-local document store: one plain-dict document per ``game_id``.

    ``load`` always decodes a fresh ``Room`` so callers can mutate it freely and
    only a ``save`` makes changes visible. ``lock(game_id)`` serializes work on
    one room; hold it across load -> mutate -> save. A room's lock only exists
    while someone holds or waits on it.
    """

    def __init__(self):
        self._lock = RLock()
        self._docs: dict[str, dict[str, Any]] = {}
        self._room_locks: dict[str, _RoomLock] = {}
        self._closed = False

    @contextmanager
    def lock(self, game_id: str) -> Iterator[None]:
        with self._lock:
            entry = self._room_locks.get(game_id)
            if entry is None:
                entry = _RoomLock()
                self._room_locks[game_id] = entry
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._lock:
                entry.users -= 1
                if entry.users == 0 and self._room_locks.get(game_id) is entry:
                    del self._room_locks[game_id]

    def active_locks(self) -> int:
        with self._lock:
            return len(self._room_locks)

    def load(self, game_id: str) -> Room | None:
        with self._lock:
            self._check_open()
            doc = self._docs.get(game_id)
            if doc is None:
                return None
            return room_from_document(doc)

    def save(self, room: Room) -> None:
        doc = room_to_document(room)
        with self._lock:
            self._check_open()
            self._docs[room.game_id] = doc

    def delete(self, game_id: str) -> bool:
        with self._lock:
            self._check_open()
            if game_id in self._docs:
                del self._docs[game_id]
                logger.info("Deleted room %s", game_id)
                return True
            return False

    def count(self) -> int:
        with self._lock:
            return len(self._docs)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            logger.info("Closing room store (%d rooms)", len(self._docs))
            self._docs.clear()
            self._room_locks.clear()
            self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("room store is closed")
