import os
import sys
import pytest

# Ensure the backend root (containing the `cardroom` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from cardroom import create_app, socketio
from cardroom.models import LobbyRepository
from cardroom.services.games.cards import Card
from cardroom.services.games.engine import Broadcaster, SessionEngine


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:5173']
    LOG_LEVEL = 'DEBUG'
    MAX_PLAYERS = 8
    MIN_PLAYERS = 1
    DECK_COUNT = 1
    LOBBY_CODE_LENGTH = 6
    TURN_TIMEOUT_SEC = 0


class RecordingBroadcaster(Broadcaster):
    """Collects everything the engine sends so tests can inspect it."""

    def __init__(self):
        self.sent = []
        self.rooms = {}

    def enter(self, player_id, room):
        self.rooms.setdefault(room, set()).add(player_id)

    def exit(self, player_id, room):
        self.rooms.get(room, set()).discard(player_id)

    def to_room(self, room, event, payload):
        self.sent.append(('room', room, event, payload))

    def to_player(self, player_id, event, payload):
        self.sent.append(('player', player_id, event, payload))

    def events(self, name):
        return [s for s in self.sent if s[2] == name]

    def last(self, name):
        matching = self.events(name)
        return matching[-1][3] if matching else None

    def clear(self):
        self.sent.clear()


def stacked_deck(*cards):
    """Deck factory dealing ``cards`` in the given order, first card first."""
    deck = [Card.from_string(c) for c in reversed(cards)]
    return lambda deck_count: list(deck)


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def engine(broadcaster):
    return SessionEngine(LobbyRepository(), broadcaster)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')
