"""Root conftest — shared test configuration."""

import os

import pytest

from courtside.config import get_settings

# Ensure tests never talk to a real project
os.environ.setdefault("COURTSIDE_SUPABASE_URL", "http://supabase.test")
os.environ.setdefault("COURTSIDE_SUPABASE_ANON_KEY", "anon-test-key")


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
