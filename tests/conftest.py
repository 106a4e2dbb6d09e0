"""Shared test fixtures and configuration.

Sets up fake environment variables so smartcal.config doesn't sys.exit(),
and provides common fixtures like a temp key-value DB.
"""

import os

# Patch env vars BEFORE any smartcal imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("REPLY_DELAY_SECONDS", "0")

from datetime import date

import pytest

# Wednesday
TODAY = date(2024, 5, 1)


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_smartcal.db")


@pytest.fixture
def kv(tmp_db_path):
    """Return a KeyValueDB instance backed by a temp file."""
    from smartcal.data.db import KeyValueDB
    return KeyValueDB(db_path=tmp_db_path)


@pytest.fixture
def store(kv):
    """Return an empty DomainStore mirrored to the temp DB."""
    from smartcal.core.domain_store import DomainStore
    return DomainStore(kv)


@pytest.fixture
def state(kv):
    """Return AppState loaded from the temp DB."""
    from smartcal.core.app_state import AppState
    return AppState.load(kv)


@pytest.fixture
def service(state):
    """Return an ActionService whose 'today' is fixed to TODAY."""
    from smartcal.core.action_service import ActionService
    return ActionService(state, today=lambda: TODAY)
