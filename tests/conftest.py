"""Pytest configuration and fixtures."""

import os

import pytest

# Settings are read at import time by some modules; set before collection
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("READINESS_ENV", "test")


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["READINESS_ENV"] = "test"


@pytest.fixture(autouse=True)
def fresh_score_cache():
    """Each test starts with an empty score cache."""
    from app.core.readiness_cache import get_score_cache

    get_score_cache().clear()
    yield
    get_score_cache().clear()
