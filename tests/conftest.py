from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from session import ClientSession, SessionHub
from state import StateStore
from web.server import create_app


class FakeWebSocket:
    """Records what the hub sends; optionally fails every send."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list = []

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError('socket closed')
        self.sent.append(json.loads(text))

    async def send_bytes(self, data: bytes) -> None:
        if self.fail:
            raise RuntimeError('socket closed')
        self.sent.append(data)

    def events(self, name: str) -> list:
        return [m['data'] for m in self.sent if isinstance(m, dict) and m['event'] == name]


@pytest.fixture
def store() -> StateStore:
    return StateStore()


@pytest.fixture
def hub(store: StateStore) -> SessionHub:
    return SessionHub(store)


@pytest.fixture
def connect(hub: SessionHub):
    def _connect(sid: str, fail: bool = False) -> ClientSession:
        session = ClientSession(FakeWebSocket(fail=fail), sid=sid)
        hub.connect(session)
        return session

    return _connect


@pytest.fixture
def client(store: StateStore):
    app = create_app(store, frontend_url='http://localhost:3000')
    with TestClient(app) as c:
        yield c
