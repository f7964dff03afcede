"""
tests/conftest.py -- Shared test fixtures for authgate.

This module provides:
  - settings: a Settings object with a known secret and cheap bcrypt rounds
  - durable_store: a DurableStore on an isolated shared-memory SQLite DB
  - unreachable_store: a DurableStore whose database file cannot be opened
  - make_client(): a TestClient whose lifespan wires a given store into app.state

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs def route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

JWT_SECRET must be set before api.main is imported so module-level settings
do not log the default-secret warning on every test run.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from pathlib import Path

os.environ.setdefault("JWT_SECRET", "test-secret-0123456789abcdef0123456789")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.flows import AuthService
from auth.store import DurableStore, FailoverStore
from core.config import Settings

# 4 is bcrypt's minimum cost; production uses 10.
_TEST_ROUNDS = 4


def shared_memory_url(prefix: str) -> str:
    """Return a unique named shared-memory SQLite URL."""
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


@pytest.fixture
def sqlite_url() -> Callable[[str], str]:
    return shared_memory_url


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        jwt_secret="test-secret-0123456789abcdef0123456789",
        database_url="",
        bcrypt_rounds=_TEST_ROUNDS,
    )


@pytest.fixture
def durable_store() -> Generator[DurableStore, None, None]:
    store = DurableStore(shared_memory_url("test_auth"))
    assert store.initialize()
    yield store
    store.close()


@pytest.fixture
def unreachable_store(tmp_path: Path) -> Generator[DurableStore, None, None]:
    """A durable store pointed at a directory that does not exist.

    Every query raises sqlite3 "unable to open database file", which is a
    genuine infrastructure failure rather than a mock.
    """
    store = DurableStore(f"sqlite:///{tmp_path / 'missing' / 'auth.db'}")
    yield store
    store.close()


def _patch_lifespan(service: AuthService):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = service.settings
        app.state.store = service.store
        app.state.auth_service = service
        yield

    return test_lifespan


@pytest.fixture
def make_client(settings: Settings) -> Generator[Callable[..., TestClient], None, None]:
    """Factory: make_client(store=None, raise_server_exceptions=True) -> started TestClient.

    store defaults to a FailoverStore with no durable backend. Clients are
    closed at teardown.
    """
    clients: list[TestClient] = []

    def _make(store: FailoverStore | None = None, raise_server_exceptions: bool = True) -> TestClient:
        service = AuthService(settings, store if store is not None else FailoverStore(None))
        app.router.lifespan_context = _patch_lifespan(service)
        client = TestClient(app, raise_server_exceptions=raise_server_exceptions)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def api_client(make_client) -> TestClient:
    """TestClient backed by a volatile-only credential store."""
    return make_client()
