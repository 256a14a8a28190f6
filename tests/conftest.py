"""Shared test fixtures and configuration.

Sets up fake environment variables so skycast.config doesn't sys.exit(),
and provides common fixtures like a temp subscriber store.
"""

import os

# Patch env vars BEFORE any skycast imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("OPENWEATHER_API_KEY", "fake-weather-key-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "")
os.environ.setdefault("BROADCAST_TIMES", "12:00,18:00")

import pytest


@pytest.fixture
def data_path(tmp_path):
    """Return a temporary subscriber data file path."""
    return tmp_path / "users.json"


@pytest.fixture
def store(data_path):
    """Return an empty SubscriberStore backed by a temp file."""
    from skycast.data.store import SubscriberStore
    return SubscriberStore.load(str(data_path))
