"""Shared fixtures for wbi-charts tests."""

from __future__ import annotations

import pytest
from wbi_charts.core.models import Observation

from tests.factories import obs


@pytest.fixture
def population_observations() -> list[Observation]:
    """One indicator over two countries."""
    return [
        obs("DEU", "POP", 2019, 1.0),
        obs("DEU", "POP", 2020, 2.0),
        obs("USA", "POP", 2019, 3.0),
        obs("USA", "POP", 2020, 4.0),
    ]


@pytest.fixture
def mixed_observations() -> list[Observation]:
    """Two countries x two indicators with gaps and a negative value."""
    return [
        obs("DEU", "GDP", 2018, 3.9e12),
        obs("DEU", "GDP", 2019, 3.8e12),
        obs("DEU", "GDP", 2020, None),
        obs("USA", "GDP", 2018, 2.05e13),
        obs("USA", "GDP", 2020, 2.09e13),
        obs("DEU", "POP", 2018, 8.29e7),
        obs("DEU", "POP", 2019, -1.0),
        obs("USA", "POP", 2019, 3.28e8),
        obs("USA", "POP", 2020, 3.31e8),
    ]


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    """Run every test in its own directory so logs/ and .env never leak in."""
    for name in ("WBI_API_BASE_URL", "WBI_API_TIMEOUT", "WBI_LOCALE", "WBI_PRESETS_PATH",
                 "WBI_LOG_DIR", "API_BASE_URL", "API_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
