from __future__ import annotations

import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_structlog():
    """cli.main() points structlog at the captured stderr; undo it after each test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "STRAVA_CLIENT_ID",
        "STRAVA_CLIENT_SECRET",
        "STRAVA_ACCESS_TOKEN",
        "STRAVA_TOKENS_FILE",
    ):
        monkeypatch.delenv(name, raising=False)
