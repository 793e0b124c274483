"""Shared pytest configuration."""

import pytest

from taskmind.config import get_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """Keep tests away from the real environment and home directory."""
    for var in (
        "GEMINI_API_KEY",
        "GOOGLE_ACCESS_TOKEN",
        "GOOGLE_ENHANCED_TIER",
        "ENVIRONMENT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
