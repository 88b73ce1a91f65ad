# tests/conftest.py

import os
import sys
from contextlib import asynccontextmanager

# Add the project root (where `app/` lives) to PYTHONPATH
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from app.main import app
from app.core.jwt import create_user_token


class AsyncRecorder:
    """Awaitable stand-in for a service function; remembers every call."""

    def __init__(self, result=None):
        self.result = result
        self.calls = []

    async def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result

    @property
    def called(self):
        return bool(self.calls)


class FakeTransaction:
    def __init__(self):
        self.session = object()
        self.committed = False
        self.aborted = False

    @asynccontextmanager
    async def __call__(self):
        try:
            yield self.session
        except Exception:
            self.aborted = True
            raise
        self.committed = True


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def fake_transaction(monkeypatch):
    tx = FakeTransaction()
    monkeypatch.setattr("app.routers.doctor.transaction", tx)
    monkeypatch.setattr("app.routers.doctor_portal.transaction", tx)
    return tx


def auth_headers(user_id, role="user"):
    return {"Authorization": f"Bearer {create_user_token(str(user_id), role)}"}
