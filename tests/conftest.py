"""Shared fixtures: one Flask app per test session, clean tables per test."""

import time

import pytest

from vertex import create_app
from vertex.config import Config
from vertex.models.db import db
from vertex.sandbox.python_sandbox import SandboxResult
from vertex.services.snapshot_storage import StorageError
from vertex.services.user_context import UserContext


class DictStorage:
    """Snapshot storage kept in a dict, with a write counter"""

    def __init__(self):
        self.data = {}
        self.writes = 0
        self.fail_reads = False
        self.fail_writes = False

    def read(self, key):
        if self.fail_reads:
            raise StorageError("read failed")
        return self.data.get(key)

    def write(self, key, payload):
        if self.fail_writes:
            raise StorageError("write failed")
        self.writes += 1
        self.data[key] = payload


class FakeRunner:
    """Python runner that records sources and returns a canned result"""

    def __init__(self, result=None, error=None):
        self.result = result or SandboxResult(stdout="hi\n")
        self.error = error
        self.sources = []
        self.shut_down = False

    def run(self, source):
        self.sources.append(source)
        if self.error is not None:
            raise self.error
        return self.result

    def shutdown(self):
        self.shut_down = True


class RecordingLog:
    def __init__(self):
        self.records = []

    def append(self, channel, language, status, user, at=None):
        record = {"channel": channel, "language": language, "status": status, "user": user}
        self.records.append(record)
        return record


def wait_for(predicate, timeout=3.0, interval=0.02):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture(scope="session")
def app(tmp_path_factory):
    db_path = tmp_path_factory.mktemp("db") / "vertex-test.db"

    class TestConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{db_path}"
        CELERY_BROKER_URL = "memory://"
        CELERY_RESULT_BACKEND = "cache+memory://"
        CELERY_TASK_ALWAYS_EAGER = True
        AUTOSAVE_DEBOUNCE_SECONDS = 0.05
        PYTHON_RUNNER = "inline"

    app = create_app(TestConfig)
    yield app
    app.extensions["vertex.playgrounds"].close_all()


@pytest.fixture(autouse=True)
def clean_state(app):
    yield
    app.extensions["vertex.playgrounds"].close_all()
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.create_all()


@pytest.fixture
def registry(app):
    return app.extensions["vertex.playgrounds"]


@pytest.fixture
def fake_runner(registry, monkeypatch):
    runner = FakeRunner()
    monkeypatch.setattr(registry, "create_python_runner", lambda: runner)
    return runner


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage():
    return DictStorage()


@pytest.fixture
def student():
    return UserContext.create("s-100", "student")


@pytest.fixture
def staff():
    return UserContext.create("t-200", "staff")
