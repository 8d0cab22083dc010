import os
import sys
import pytest

# Ensure the backend root (containing the `hackroom` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from hackroom import create_app, db, socketio
from hackroom.realtime import NAMESPACE


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:5173']
    TIMER_TICK_SEC = 1
    MESSAGE_HISTORY_LIMIT = 100
    MAX_CONTENT_LENGTH = 1024 * 1024
    LOG_LEVEL = 'DEBUG'


class FakeClock:
    """Settable stand-in for time.time."""

    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
        return self.now


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def flask_app(clock, tmp_path):
    application = create_app(TestConfig)
    application.config['TIMER_CLOCK'] = clock
    application.config['UPLOAD_FOLDER'] = str(tmp_path / 'uploads')
    with application.app_context():
        # Ensure models are imported so tables are created
        import hackroom.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    """Open any number of Socket.IO test clients on the '/ws' namespace."""
    opened = []

    def _connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace=NAMESPACE,
        )
        opened.append(test_client)
        return test_client

    yield _connect
    for test_client in opened:
        if test_client.is_connected(NAMESPACE):
            test_client.disconnect(namespace=NAMESPACE)


@pytest.fixture()
def sio_client(sio_factory):
    return sio_factory()


def payloads(received, name):
    """Payloads of every received event called ``name``."""
    # Flask-SocketIO's test client stores 'message'/'json' event args unwrapped
    return [
        pkt['args'] if pkt['name'] in ('message', 'json') else pkt['args'][0]
        for pkt in received
        if pkt['name'] == name
    ]


def join(test_client, room_id, username):
    test_client.emit('joinRoom', {'roomId': room_id, 'username': username}, namespace=NAMESPACE)
    return test_client.get_received(NAMESPACE)
