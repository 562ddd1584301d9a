"""Pytest configuration and fixtures."""

from collections.abc import Iterator

import pytest

from factories import TARGET

from token_cluster_tracker.config import Settings, clear_settings_cache
from token_cluster_tracker.profiler.entities import EntityRegistry


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    """Run every test with a clean environment and no .env file."""
    for name in (
        "LOG_LEVEL",
        "ANALYZER_TOKEN_SYMBOL",
        "ANALYZER_DEFAULT_DECIMALS",
        "ANALYZER_RECENT_DISPERSAL_DAYS",
        "ANALYZER_EXTRA_DEX_ROUTERS",
        "ANALYZER_ECOSYSTEM_CONTRACTS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def target() -> str:
    """Target wallet under investigation."""
    return TARGET


@pytest.fixture
def settings() -> Settings:
    """Default settings (no environment overrides)."""
    return Settings()


@pytest.fixture
def empty_registry() -> EntityRegistry:
    """Registry with only the built-in routers and burn sentinels."""
    return EntityRegistry()
