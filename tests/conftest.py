"""
tests/conftest.py -- Shared test fixtures for SmartSprint tests.

This module provides:
  - make_settings(): Settings with a test secret, cheap bcrypt and an isolated DB
  - client: module-scoped TestClient over a real app built by create_app()
  - make_user: factory that inserts a user straight into the store and returns
    (user, token) so route tests do not depend on /register
  - bearer(): Authorization header helper

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares one
in-memory instance across all connections in the same process.

The rate limiter is a process-wide singleton; it is reset before every test
so login-heavy modules do not trip each other's limits.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import create_app
from auth.models import User
from auth.service import register_user
from core.config import Settings

TEST_SECRET = "smartsprint-test-secret-0123456789abcdef"
TEST_ROUNDS = 4
DEFAULT_PASSWORD = "correct-horse-1"

_email_counter = itertools.count(1)


def make_settings(db_name: str, **overrides) -> Settings:
    """Build Settings for an isolated named in-memory database.

    _env_file=None keeps a developer's local .env out of the test run.
    """
    values = {
        "secret_key": TEST_SECRET,
        "database_url": f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true",
        "bcrypt_rounds": TEST_ROUNDS,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}{next(_email_counter)}@example.com"


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def _reset_rate_limits() -> Generator[None, None, None]:
    limiter.reset()
    yield


@pytest.fixture(scope="module")
def client(request: pytest.FixtureRequest) -> Generator[TestClient, None, None]:
    """Yield a TestClient whose lifespan opened a fresh store for this module.

    The database name is derived from the test module so modules never share
    rows. The store is closed (and the in-memory DB dropped) on exit.
    """
    db_name = "test_" + request.module.__name__.rsplit(".", 1)[-1]
    app = create_app(make_settings(db_name))
    with TestClient(app, raise_server_exceptions=True) as test_client:
        yield test_client


@pytest.fixture
def make_user(client: TestClient) -> Callable[..., tuple[User, str]]:
    """Return a factory: make_user(role="developer", password=...) -> (user, token).

    Users are written directly through register_user() so route tests for
    /users and the guard do not depend on self-registration rules.
    """

    def _make(role: str = "developer", password: str = DEFAULT_PASSWORD, name: str | None = None) -> tuple[User, str]:
        store = client.app.state.user_store
        user = register_user(
            store,
            name=name or f"{role.title()} User",
            email=unique_email(role),
            password=password,
            role=role,
            rounds=TEST_ROUNDS,
        )
        token = client.app.state.token_issuer.issue(user)
        return user, token

    return _make
