# tests/conftest.py

"""Shared pytest fixtures for all build tests."""

from collections.abc import Generator

import pytest

_ENV_VARS = (
    "CHARMED_DOMAIN",
    "CHARMED_RSS_URL",
    "CHARMED_SHOP_URL",
    "CHARMED_DISCOVERY",
    "CHARMED_SCRAPE_MODE",
    "CHARMED_OUTPUT_ROOT",
)


@pytest.fixture(autouse=True)
def clean_env(
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[None, None, None]:
    """Keep a developer's .env overrides out of every test."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    yield
