"""Pytest configuration and fixtures."""

import os

# Settings are read once at import time, so configure the environment first
os.environ["MONGODB_URI"] = ""
os.environ["BCRYPT_ROUNDS"] = "10"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DEBUG"] = "true"
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")

from datetime import datetime, timezone
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from dropship_api.core.rate_limit import limiter
from dropship_api.core.rbac import UserRole
from dropship_api.core.security import get_password_hash, issue_session_token
from dropship_api.db.mongo import get_store
from dropship_api.main import app
from tests.fakes import FakeStore


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def client(store: FakeStore) -> Generator[TestClient, None, None]:
    """Create a test client backed by the in-memory store."""
    app.dependency_overrides[get_store] = lambda: store
    limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    limiter.enabled = True
    app.dependency_overrides.clear()


def make_user(store: FakeStore, email: str, password: str = "secret123",
              role: UserRole = UserRole.CUSTOMER, name: str = "Test User") -> dict:
    return store.users.seed({
        "name": name,
        "email": email,
        "phone": None,
        "address": None,
        "password_hash": get_password_hash(password),
        "role": role.value,
        "created_at": datetime.now(timezone.utc),
    })


def auth_headers_for(user: dict) -> dict:
    token = issue_session_token(str(user["_id"]), user["role"], user["email"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_user(store: FakeStore) -> dict:
    """Create a customer account."""
    return make_user(store, "customer@example.com")


@pytest.fixture
def superadmin(store: FakeStore) -> dict:
    return make_user(store, "root@example.com", role=UserRole.SUPERADMIN, name="Root")


@pytest.fixture
def auth_headers(test_user: dict) -> dict:
    return auth_headers_for(test_user)


@pytest.fixture
def superadmin_headers(superadmin: dict) -> dict:
    return auth_headers_for(superadmin)
