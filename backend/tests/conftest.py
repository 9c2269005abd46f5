import os
import sys

import pytest

# Ensure the backend root (containing the `wordchain` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from wordchain.game.machine import RoomRules, RoomStateMachine
from wordchain.game.service import EXTENSION_KEY, GameService
from wordchain.game.store import MemoryRoomStore
from wordchain.server import create_app, shutdown_app


class TestConfig:
    TESTING = True
    SECRET_KEY = 'test-secret'
    CORS_ORIGINS = '*'
    TRUST_PROXY_HEADERS = False
    SOCKETIO_ASYNC_MODE = 'threading'
    MAX_PLAYERS = 10
    TURN_DURATION_SEC = 10
    MIN_WORD_LENGTH = 2
    ROUND_HISTORY_LIMIT = 20


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start_ms=1_700_000_000_000):
        self.now = start_ms

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += int(seconds * 1000)


class RecordingBroadcaster:
    def __init__(self):
        self.updates = []
        self.deleted = []

    def notify(self, game_id, state):
        self.updates.append((game_id, state))

    def notify_deleted(self, game_id):
        self.deleted.append(game_id)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def machine():
    return RoomStateMachine(RoomRules())


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def service(clock, broadcaster):
    svc = GameService(MemoryRoomStore(), broadcaster=broadcaster, clock=clock)
    yield svc
    svc.close()


@pytest.fixture()
def app_and_socketio(clock):
    application, sio = create_app(TestConfig)
    application.extensions[EXTENSION_KEY].clock = clock
    yield application, sio
    shutdown_app(application)


@pytest.fixture()
def make_app():
    apps = []

    def _make():
        application, sio = create_app(TestConfig)
        apps.append(application)
        return application, sio

    yield _make
    for application in apps:
        shutdown_app(application)


@pytest.fixture()
def flask_app(app_and_socketio):
    return app_and_socketio[0]


@pytest.fixture()
def socketio(app_and_socketio):
    return app_and_socketio[1]


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app, socketio):
    test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
    yield test_client
    try:
        test_client.disconnect()
    except Exception:
        pass
