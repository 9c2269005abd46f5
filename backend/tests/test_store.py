import threading

import pytest

from wordchain.game.errors import NotFound
from wordchain.game.machine import RoomRules, RoomStateMachine
from wordchain.game.models import Player, Room, room_from_document, room_to_document
from wordchain.game.service import GameService
from wordchain.game.store import MemoryRoomStore


def make_room():
    return Room(game_id='abc123', host_id='p1', players=[Player(id='p1', name='Alice')])


def test_load_missing_room():
    assert MemoryRoomStore().load('nope') is None


def test_saved_room_is_detached_from_caller():
    store = MemoryRoomStore()
    room = make_room()
    store.save(room)

    room.words.append('가방')
    assert store.load('abc123').words == []

    loaded = store.load('abc123')
    loaded.players.append(Player(id='p2', name='Bob'))
    assert len(store.load('abc123').players) == 1

    store.save(loaded)
    assert [p.name for p in store.load('abc123').players] == ['Alice', 'Bob']


def test_document_codec_keeps_history():
    machine = RoomStateMachine()
    room = make_room()
    machine.start(room, 'p1', 100)
    machine.timeout(room, None, 200)
    decoded = room_from_document(room_to_document(room))
    assert decoded == room
    assert decoded.history[0].losing_player_id == 'p1'


def test_delete_and_count():
    store = MemoryRoomStore()
    store.save(make_room())
    assert store.count() == 1
    assert store.delete('abc123') is True
    assert store.delete('abc123') is False
    assert store.load('abc123') is None
    assert store.count() == 0


def test_room_lock_is_reentrant_and_released():
    store = MemoryRoomStore()
    with store.lock('a'):
        with store.lock('a'):
            assert store.active_locks() == 1
        with store.lock('b'):
            assert store.active_locks() == 2
        assert store.active_locks() == 1
    assert store.active_locks() == 0


def test_room_lock_blocks_other_threads():
    store = MemoryRoomStore()
    entered = threading.Event()
    order = []

    def worker():
        entered.set()
        with store.lock('a'):
            order.append('worker')

    with store.lock('a'):
        t = threading.Thread(target=worker)
        t.start()
        entered.wait(1)
        order.append('owner')
    t.join(1)
    assert order == ['owner', 'worker']
    assert store.active_locks() == 0


def test_missing_rooms_leave_no_locks_behind():
    service = GameService(MemoryRoomStore())
    for i in range(100):
        with pytest.raises(NotFound):
            service.start_game(f'junk{i}', 'x')
    assert service.store.active_locks() == 0
    assert service.store.count() == 0


def test_deleted_room_releases_its_lock():
    service = GameService(MemoryRoomStore())
    alice = service.join_game('abc123', 'Alice')['playerId']
    service.leave_game('abc123', alice)
    assert service.store.active_locks() == 0


def test_closed_store_rejects_access():
    store = MemoryRoomStore()
    store.save(make_room())
    store.close()
    store.close()
    with pytest.raises(RuntimeError):
        store.load('abc123')


def test_concurrent_joins_are_serialized():
    service = GameService(MemoryRoomStore(), machine=RoomStateMachine(RoomRules(max_players=10)))
    names = ['가', '나', '다', '라', '마', '바', '사', '아', '자', '차']
    barrier = threading.Barrier(len(names))
    errors = []

    def join(name):
        barrier.wait()
        try:
            service.join_game('race', name)
        except Exception as exc:  # pragma: no cover
            errors.append(exc)

    threads = [threading.Thread(target=join, args=(n,)) for n in names]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    state = service.get_state('race')
    assert sorted(p['name'] for p in state['players']) == sorted(names)
    assert state['hostId'] in {p['id'] for p in state['players']}
