"""
tests/conftest.py -- Shared test fixtures for the player auth service.

This module provides:
  - make_settings(): Settings with a fixed secret and the test CORS allow-list
  - _make_test_store(): isolated named shared-memory SQLite credential store
  - _patch_lifespan(): wires test handlers into app.state, bypassing real startup
  - api_client: TestClient over the real FastAPI app with a fresh store per test
  - InMemoryPlayerStore: dict-backed PlayerStore for handler unit tests
  - fake_store / hasher: in-memory store and real hasher wrapped in mock spies
  - player_payload: a valid registration body
  - settings_factory / codec / expired_token: test Settings builder, matching
    token codec and an already-expired session token

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs handlers in a thread pool. Plain :memory: DBs are
per-connection and would present a blank schema to each worker thread.

The DEBUG env var must be set before any api import so get_settings() (read
once by api/main.py at import) auto-generates JWT_SECRET instead of raising.
"""

from __future__ import annotations

import os
import threading
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

# CRITICAL: Set DEBUG before any api/core import so get_settings() can
# auto-generate JWT_SECRET in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.handlers.factory import build_auth_handlers
from api.limiter import limiter
from api.main import app
from auth.models import NewPlayer, PlayerRecord
from auth.passwords import PasswordHasher
from auth.store import DuplicateEmailError, SqlPlayerStore
from auth.tokens import TokenCodec
from core.config import Settings

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
TEST_ORIGINS = "http://localhost:3000,https://dev.example.com"


def make_settings(**overrides) -> Settings:
    values = {
        "jwt_secret": TEST_SECRET,
        "allowed_origins": TEST_ORIGINS,
        "environment": "development",
        "bcrypt_rounds": 10,
    }
    values.update(overrides)
    return Settings(**values)


# ---------------------------------------------------------------------------
# In-memory credential store
# ---------------------------------------------------------------------------


class InMemoryPlayerStore:
    """Dict-backed PlayerStore keyed by normalized email.

    Mirrors SqlPlayerStore semantics: case-insensitive lookup, uuid4 ids,
    DuplicateEmailError when the normalized email is already taken.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_email: dict[str, PlayerRecord] = {}

    def find_by_email(self, email: str) -> PlayerRecord | None:
        with self._lock:
            return self._by_email.get(email.strip().lower())

    def find_by_id(self, player_id: str) -> PlayerRecord | None:
        with self._lock:
            return next((p for p in self._by_email.values() if p.id == player_id), None)

    def exists_by_email(self, email: str) -> bool:
        return self.find_by_email(email) is not None

    def insert(self, player: NewPlayer) -> str:
        key = player.email.strip().lower()
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            if key in self._by_email:
                raise DuplicateEmailError("Email already registered")
            record = PlayerRecord(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                **{**asdict(player), "email": key},
            )
            self._by_email[key] = record
        return record.id

    def ping(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_store() -> SqlPlayerStore:
    """Create an isolated named shared-memory SQLite store.

    The uuid suffix keeps every test's database separate.
    """
    url = f"sqlite:///file:test_players_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    return SqlPlayerStore(url)


def _patch_lifespan(settings: Settings, store):
    """Return an async context manager that replaces the real lifespan.

    Wires the test store and handlers built from test Settings into
    app.state, so routes hit real handlers against an isolated database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        handlers = build_auth_handlers(settings, store)
        app.state.settings = settings
        app.state.player_store = store
        app.state.auth_handlers = handlers
        app.state.token_codec = handlers.codec
        yield

    return test_lifespan


@pytest.fixture
def client_factory():
    """Yield a function that starts a TestClient for given Settings and store.

    Rate limiting is disabled while the client runs; the login tests send
    more requests per minute than the production limit allows.
    """
    clients: list[tuple[TestClient, SqlPlayerStore]] = []

    def start(settings: Settings | None = None, store=None) -> tuple[TestClient, object]:
        settings = settings or make_settings()
        store = store if store is not None else _make_test_store()
        app.router.lifespan_context = _patch_lifespan(settings, store)
        client = TestClient(app, raise_server_exceptions=True)
        client.__enter__()
        clients.append((client, store))
        return client, store

    limiter.enabled = False
    yield start
    limiter.enabled = True
    for client, store in clients:
        client.__exit__(None, None, None)
        if isinstance(store, SqlPlayerStore):
            store.close()


@pytest.fixture
def api_client(client_factory) -> Generator[tuple[TestClient, SqlPlayerStore], None, None]:
    """Yield (client, store) for API integration tests with default test Settings."""
    yield client_factory()


# ---------------------------------------------------------------------------
# Unit-test collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_store() -> MagicMock:
    """In-memory PlayerStore wrapped in a spy so tests can assert on calls."""
    return MagicMock(wraps=InMemoryPlayerStore())


@pytest.fixture
def hasher() -> MagicMock:
    """Real bcrypt hasher (cost 10) wrapped in a spy."""
    return MagicMock(wraps=PasswordHasher(10))


@pytest.fixture
def player_payload() -> dict:
    return {
        "firstName": "John",
        "lastName": "Doe",
        "email": "john.doe@example.com",
        "password": "Password123!",
        "sex": "male",
        "sport": "basketball",
        "position": "Guard",
        "gpa": 3.5,
        "country": "USA",
        "state": "California",
    }


@pytest.fixture
def settings_factory():
    """Return make_settings so tests can build Settings with overrides."""
    return make_settings


@pytest.fixture
def codec() -> TokenCodec:
    """Token codec signing with the same secret as make_settings()."""
    return TokenCodec(TEST_SECRET)


@pytest.fixture
def expired_token() -> str:
    """A token signed with the test secret whose 7-day lifetime ended long ago."""
    past = datetime.now(timezone.utc) - timedelta(days=30)
    return TokenCodec(TEST_SECRET, clock=lambda: past).issue("player-1", "john.doe@example.com")
