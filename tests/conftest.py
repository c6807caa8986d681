"""
Root test configuration and fixtures for the matchmaking project.

This conftest.py provides common fixtures for all test categories:
- unit/: Fast, isolated unit tests (no I/O besides tmp_path)

Note: sys.path manipulation is handled here to ensure imports work correctly.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Add project root to path to allow imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from matchmaking.config import ConfigLoader, MatchmakingSettings  # noqa: E402


@pytest.fixture(autouse=True)
def isolate_config_env(monkeypatch):
    """Keep CONFIG_* and log level overrides from the developer's shell out of tests."""
    for name in list(os.environ):
        if name.startswith("CONFIG_MATCHMAKER_") or name in ("LOG_LEVEL", "MATCHMAKER_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)


# =============================================================================
# Configuration Fixtures
# =============================================================================

# Values matching the schema defaults, spelled out so tests read on their own
TEST_CONFIG = {
    "matchmaker.bonus.category_match": 10.0,
    "matchmaker.multiplier.second_choice": 0.75,
    "matchmaker.multiplier.third_choice": 0.5,
    "matchmaker.multiplier.fourth_choice": 0.25,
    "matchmaker.multiplier.primary_persona": 2.0,
    "matchmaker.bonus.avoid": -20.0,
    "matchmaker.bonus.preferred_partner": 3.0,
    "matchmaker.bonus.max_reunion": 2.0,
    "matchmaker.grudge_window.weeks": 4,
    "matchmaker.preferences.amber": "[GARNET, OPAL, AVENTURINE]",
    "matchmaker.preferences.aventurine": "[OPAL, GARNET, AMBER]",
    "matchmaker.preferences.garnet": "[AMBER, AVENTURINE, OPAL]",
    "matchmaker.preferences.opal": "[AVENTURINE, AMBER, GARNET]",
}


@pytest.fixture
def test_config():
    """Provide the test configuration mapping."""
    return dict(TEST_CONFIG)


@pytest.fixture
def config_loader(test_config):
    """Loader over the test configuration with an empty environment."""
    return ConfigLoader(test_config, env={})


@pytest.fixture
def settings(config_loader) -> MatchmakingSettings:
    """Settings snapshot built from the test configuration."""
    return config_loader.settings()
