"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It points settings at an in-memory SQLite store and configures admin keys
before anything imports ``app.core.config``.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ["TESTING"] = "true"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["APP_ADMIN_API_KEY_REQUIRED"] = "true"
os.environ["APP_ADMIN_API_KEYS"] = "test-admin-key-123,test-admin-key-456"
os.environ["APP_RATE_LIMIT_ENABLED"] = "true"
os.environ["APP_RATE_LIMIT_REQUESTS"] = "5"
os.environ["APP_RATE_LIMIT_WINDOW_SECONDS"] = "900"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import AsyncIterator, Iterator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.adapters.store.sqlalchemy_store import SQLAlchemyWaitlistStore
from app.core.app_factory import create_app


@pytest_asyncio.fixture
async def store() -> AsyncIterator[SQLAlchemyWaitlistStore]:
    """Fresh in-memory store with the schema created."""
    waitlist_store = SQLAlchemyWaitlistStore.from_url("sqlite+aiosqlite://")
    await waitlist_store.initialize()
    yield waitlist_store
    await waitlist_store.close()


@pytest.fixture
def valid_payload() -> dict[str, str]:
    """Signup body that passes validation."""
    return {
        "email": "a@b.com",
        "name": "Ann",
        "farmType": "vegetable",
        "farmSize": "small",
        "interests": "composting",
    }


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Test client over a fresh app (own in-memory store and rate limiter)."""
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-API-Key": "test-admin-key-123"}
