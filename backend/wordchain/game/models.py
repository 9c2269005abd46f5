from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal


RoomPhase = Literal["lobby", "playing", "round_over"]


@dataclass
class Player:
    id: str
    name: str


@dataclass
class RoundRecord:
    words: list[str] = field(default_factory=list)
    losing_player_id: str | None = None
    started_at_ms: int | None = None
    ended_at_ms: int | None = None


@dataclass
class Room:
    game_id: str
    host_id: str | None = None
    # Insertion order is turn order.
    players: list[Player] = field(default_factory=list)
    words: list[str] = field(default_factory=list)
    current_player_index: int = 0
    is_started: bool = False
    is_game_over: bool = False
    turn_started_at_ms: int | None = None
    round_started_at_ms: int | None = None
    history: list[RoundRecord] = field(default_factory=list)
    created_at_ms: int | None = None
    updated_at_ms: int | None = None

    @property
    def phase(self) -> RoomPhase:
        if not self.is_started:
            return "lobby"
        if self.is_game_over:
            return "round_over"
        return "playing"

    @property
    def last_word(self) -> str | None:
        return self.words[-1] if self.words else None

    @property
    def current_player(self) -> Player | None:
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None

    def find_player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def find_player_by_name(self, name: str) -> Player | None:
        for p in self.players:
            if p.name == name:
                return p
        return None


def room_to_document(room: Room) -> dict[str, Any]:
    """Encode a room as a plain document. The result shares no lists with ``room``."""
    return asdict(room)


def room_from_document(doc: dict[str, Any]) -> Room:
    data = dict(doc)
    data["players"] = [Player(**p) for p in data.get("players", [])]
    data["words"] = list(data.get("words", []))
    data["history"] = [
        RoundRecord(
            words=list(h.get("words", [])),
            losing_player_id=h.get("losing_player_id"),
            started_at_ms=h.get("started_at_ms"),
            ended_at_ms=h.get("ended_at_ms"),
        )
        for h in data.get("history", [])
    ]
    return Room(**data)
