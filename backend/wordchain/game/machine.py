from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from .errors import Forbidden, InvalidAction, InvalidWord, TurnExpired
from .models import Player, Room, RoundRecord
from .words import MIN_WORD_LENGTH, validate

logger = logging.getLogger(__name__)


def new_player_id() -> str:
    return f"player_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class RoomRules:
    max_players: int = 10
    turn_duration_sec: int = 10
    min_word_length: int = MIN_WORD_LENGTH
    history_limit: int = 20

    @property
    def turn_duration_ms(self) -> int:
        return self.turn_duration_sec * 1000

    @classmethod
    def from_config(cls, config) -> "RoomRules":
        return cls(
            max_players=int(config.get("MAX_PLAYERS", 10)),
            turn_duration_sec=int(config.get("TURN_DURATION_SEC", 10)),
            min_word_length=int(config.get("MIN_WORD_LENGTH", MIN_WORD_LENGTH)),
            history_limit=int(config.get("ROUND_HISTORY_LIMIT", 20)),
        )


@dataclass
class JoinResult:
    room: Room
    player: Player
    created: bool = False
    rejoined: bool = False


class RoomStateMachine:
    """Transitions for a single room: lobby -> playing -> round_over -> playing ...

    Operations mutate the given ``Room`` in place and never touch storage. The
    caller hands in ``now_ms`` so the turn timer is evaluated lazily on access.
    Rejections raise before any mutation, except ``TurnExpired`` which ends the
    round first.
    """

    def __init__(self, rules: RoomRules | None = None):
        self.rules = rules or RoomRules()

    def join(self, game_id: str, room: Room | None, name: str, now_ms: int) -> JoinResult:
        if room is None:
            player = Player(id=new_player_id(), name=name)
            room = Room(
                game_id=game_id,
                host_id=player.id,
                players=[player],
                created_at_ms=now_ms,
                updated_at_ms=now_ms,
            )
            logger.info("Created room %s with host %s (%s)", game_id, player.id, name)
            return JoinResult(room=room, player=player, created=True)

        existing = room.find_player_by_name(name)
        if existing is not None:
            return JoinResult(room=room, player=existing, rejoined=True)

        if len(room.players) >= self.rules.max_players:
            raise Forbidden("This game room is full.", code="room_full")

        player = Player(id=new_player_id(), name=name)
        room.players.append(player)
        room.updated_at_ms = now_ms
        logger.info("Player %s (%s) joined room %s", player.id, name, room.game_id)
        return JoinResult(room=room, player=player)

    def start(self, room: Room, player_id: str, now_ms: int) -> Room:
        if player_id != room.host_id:
            raise Forbidden("Only the host can start the game.", code="only_host")

        phase = room.phase
        if phase == "playing":
            return room

        if phase == "round_over":
            room.words = []
            room.current_player_index = 0
            room.is_game_over = False

        room.is_started = True
        room.turn_started_at_ms = now_ms
        room.round_started_at_ms = now_ms
        room.updated_at_ms = now_ms
        logger.info("Room %s started a round with %d players", room.game_id, len(room.players))
        return room

    def submit_word(self, room: Room, player_id: str, word: str, now_ms: int) -> Room:
        self._require_playing(room)

        current = room.current_player
        if current is None or current.id != player_id:
            raise Forbidden("Not your turn.", code="not_your_turn")

        if self.is_turn_expired(room, now_ms):
            self._end_round(room, now_ms)
            raise TurnExpired(room, self.rules.turn_duration_sec)

        check = validate(word, room.words, room.last_word, self.rules.min_word_length)
        if not check.ok:
            raise InvalidWord(check.reason, self.rules.min_word_length)

        room.words.append(word)
        room.current_player_index = (room.current_player_index + 1) % len(room.players)
        room.turn_started_at_ms = now_ms
        room.updated_at_ms = now_ms
        return room

    def timeout(self, room: Room, player_id: str | None, now_ms: int) -> Room:
        # Any client may report the timeout; turn ownership is not checked.
        phase = room.phase
        if phase == "lobby":
            raise InvalidAction("Game has not started.", code="game_not_started")
        if phase == "round_over":
            return room
        logger.info("Room %s timeout reported by %s", room.game_id, player_id)
        self._end_round(room, now_ms)
        return room

    def leave(self, room: Room, player_id: str, now_ms: int) -> bool:
        """Remove ``player_id``. Returns True when the room is left empty."""
        idx = next((i for i, p in enumerate(room.players) if p.id == player_id), None)
        if idx is None:
            return not room.players

        room.players.pop(idx)
        room.updated_at_ms = now_ms
        logger.info("Player %s left room %s", player_id, room.game_id)

        if not room.players:
            room.host_id = None
            room.current_player_index = 0
            return True

        if room.host_id == player_id:
            room.host_id = room.players[0].id
            logger.info("Room %s host moved to %s", room.game_id, room.host_id)

        if idx < room.current_player_index:
            room.current_player_index -= 1
        elif idx == room.current_player_index:
            # The next player inherits the turn.
            if room.current_player_index >= len(room.players):
                room.current_player_index = 0
            if room.phase == "playing":
                room.turn_started_at_ms = now_ms
        return False

    def is_turn_expired(self, room: Room, now_ms: int) -> bool:
        if room.turn_started_at_ms is None:
            return False
        return now_ms - room.turn_started_at_ms > self.rules.turn_duration_ms

    def loser_id(self, room: Room) -> str | None:
        # The turn holder at round end, as recorded; seats may have shifted since.
        if room.phase != "round_over" or not room.history:
            return None
        losing_id = room.history[-1].losing_player_id
        if losing_id is None or room.find_player(losing_id) is None:
            return None
        return losing_id

    def _require_playing(self, room: Room) -> None:
        phase = room.phase
        if phase == "lobby":
            raise InvalidAction("Game has not started.", code="game_not_started")
        if phase == "round_over":
            raise InvalidAction("The round is over.", code="round_over")

    def _end_round(self, room: Room, now_ms: int) -> None:
        room.is_game_over = True
        room.turn_started_at_ms = None
        room.updated_at_ms = now_ms

        loser = room.current_player
        room.history.append(
            RoundRecord(
                words=list(room.words),
                losing_player_id=loser.id if loser else None,
                started_at_ms=room.round_started_at_ms,
                ended_at_ms=now_ms,
            )
        )
        if len(room.history) > self.rules.history_limit:
            room.history = room.history[-self.rules.history_limit:]

        logger.info(
            "Room %s round over after %d words, loser=%s",
            room.game_id,
            len(room.words),
            loser.id if loser else None,
        )
