import os
import sys
import pytest

# Ensure the backend root (containing the `courtside` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from courtside import create_app, socketio
from courtside.models import default_courts
from courtside.store import SessionStore


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'
    LOG_LEVEL = 'DEBUG'
    ROOM_IDLE_TIMEOUT_SEC = 2 * 60 * 60
    REAPER_INTERVAL_SEC = 30 * 60
    ENABLE_REAPER_IN_TESTS = False
    SURFACE_COURT_ERRORS = False
    CLIENT_BUILD_DIR = None


class FakeManager:
    def __init__(self):
        self.disconnected = set()

    def is_connected(self, sid, namespace):
        return sid not in self.disconnected


class FakeServer:
    def __init__(self):
        self.manager = FakeManager()


class FakeSocketIO:
    """Records emits instead of sending them."""

    def __init__(self):
        self.sent = []
        self.broken = set()
        self.server = FakeServer()

    def disconnect(self, sid):
        self.server.manager.disconnected.add(sid)

    def emit(self, event, data=None, to=None, namespace=None):
        if to in self.broken:
            raise ConnectionError(f'{to} is gone')
        self.sent.append((to, event, data))

    def events_for(self, sid):
        return [(event, data) for to, event, data in self.sent if to == sid]


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sessions(flask_app):
    return flask_app.extensions['session_store']


@pytest.fixture()
def room_key(client):
    return client.post('/api/generate-key').get_json()['roomKey']


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
    yield test_client
    if test_client.is_connected():
        test_client.disconnect()


@pytest.fixture()
def make_sio_client(flask_app):
    clients = []

    def _make():
        c = socketio.test_client(flask_app)
        clients.append(c)
        return c

    yield _make
    for c in clients:
        if c.is_connected():
            c.disconnect()


@pytest.fixture()
def store():
    return SessionStore()


@pytest.fixture()
def room(store):
    return store.create('ROOM0001', default_courts())


@pytest.fixture()
def fake_socketio():
    return FakeSocketIO()
