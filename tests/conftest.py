import pytest
from fastapi.testclient import TestClient
from app import create_app
from signaling import SignalingRouter


class RecordingEmitter:
    def __init__(self):
        self.sent = []

    def emit(self, connection_id, event, payload):
        self.sent.append((connection_id, event, payload))

    def to(self, connection_id):
        return [(event, payload) for cid, event, payload in self.sent if cid == connection_id]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest.fixture
def router(emitter):
    return SignalingRouter(emitter)


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
