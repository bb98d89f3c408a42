import os
import sys
import pytest

# Ensure the backend root (containing the `sword_shield` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from sword_shield import create_app, socketio
from sword_shield.context import GameContext

ADMIN_SECRET = 'test-admin'


class TestConfig:
    TESTING = True
    SECRET_KEY = 'test-secret'
    ADMIN_SECRET = ADMIN_SECRET
    TOTAL_ROUNDS = 3
    RECONNECT_GRACE_SEC = 600
    BROADCAST_WINDOW_MS = 300
    ALLOWED_ORIGINS = ['http://localhost:5173']
    LOG_LEVEL = 'DEBUG'


class FakeScheduler:
    """Stands in for socketio.start_background_task / socketio.sleep.

    Tasks are queued instead of started so tests decide when a deferred
    broadcast window elapses.
    """

    def __init__(self):
        self.tasks = []
        self.slept = []

    def start_task(self, fn, *args):
        self.tasks.append((fn, args))

    def sleep(self, seconds):
        self.slept.append(seconds)

    def run_all(self):
        tasks, self.tasks = self.tasks, []
        for fn, args in tasks:
            fn(*args)
        return len(tasks)


@pytest.fixture()
def scheduler():
    return FakeScheduler()


@pytest.fixture()
def emitted():
    return []


@pytest.fixture()
def game(scheduler, emitted):
    return GameContext(
        admin_secret=ADMIN_SECRET,
        emit=emitted.append,
        start_task=scheduler.start_task,
        sleep=scheduler.sleep,
        total_rounds=3,
        grace_sec=600,
        window_sec=0.5,
    )


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio_client(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass


@pytest.fixture()
def sio_client(make_sio_client):
    return make_sio_client()
