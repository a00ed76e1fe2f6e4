"""Shared test setup: keep loggers off disk and give every test a clean settings cache."""

import os

os.environ.setdefault("LOG_TO_FILE", "false")

import pytest

from scripts.lib.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
