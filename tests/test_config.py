# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from pagemail_client.config import Settings

_VARS = (
    "PAGEMAIL_API_BASE_URL",
    "PAGEMAIL_API_TOKEN",
    "PAGEMAIL_TOKEN",
    "PAGEMAIL_PAGE_SIZE",
    "PAGEMAIL_POLL_INTERVAL_SECONDS",
    "PAGEMAIL_POLL_PENDING_INTERVAL_SECONDS",
    "PAGEMAIL_POLL_IMMEDIATE",
    "PAGEMAIL_DETAIL_INTERVAL_SECONDS",
    "PAGEMAIL_DETAIL_PENDING_INTERVAL_SECONDS",
    "PAGEMAIL_CONSOLE_ENABLED",
    "PAGEMAIL_DATA_DIR",
    "PAGEMAIL_HTTP_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    s = Settings.from_env()
    assert s.api_base_url == "http://localhost:8080/api"
    assert s.api_token is None
    assert s.poll_interval_seconds == 10.0
    assert s.poll_pending_interval_seconds == 5.0
    assert s.poll_immediate is True
    assert s.detail_interval_seconds == 10.0
    assert s.detail_pending_interval_seconds == 5.0
    assert s.page_size == 20
    assert s.data_dir == Path(".local/pagemail")


def test_overrides_and_aliases(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAGEMAIL_API_BASE_URL", "https://pagemail.example/api/")
    monkeypatch.setenv("PAGEMAIL_TOKEN", "short-alias")
    monkeypatch.setenv("PAGEMAIL_POLL_INTERVAL_SECONDS", "30")
    monkeypatch.setenv("PAGEMAIL_POLL_PENDING_INTERVAL_SECONDS", "2.5")
    monkeypatch.setenv("PAGEMAIL_POLL_IMMEDIATE", "off")
    monkeypatch.setenv("PAGEMAIL_DETAIL_PENDING_INTERVAL_SECONDS", "1")
    monkeypatch.setenv("PAGEMAIL_CONSOLE_ENABLED", "0")

    s = Settings.from_env()
    assert s.api_base_url == "https://pagemail.example/api"
    assert s.api_token == "short-alias"
    assert s.poll_interval_seconds == 30.0
    assert s.poll_pending_interval_seconds == 2.5
    assert s.poll_immediate is False
    # Detail views inherit the list cadence unless set explicitly.
    assert s.detail_interval_seconds == 30.0
    assert s.detail_pending_interval_seconds == 1.0
    assert s.console_enabled is False


def test_api_token_wins_over_alias(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAGEMAIL_API_TOKEN", "primary")
    monkeypatch.setenv("PAGEMAIL_TOKEN", "alias")
    assert Settings.from_env().api_token == "primary"


def test_malformed_numbers_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAGEMAIL_POLL_INTERVAL_SECONDS", "soon")
    monkeypatch.setenv("PAGEMAIL_PAGE_SIZE", "-3")

    s = Settings.from_env()
    assert s.poll_interval_seconds == 10.0
    assert s.page_size == 1


def test_non_positive_durations_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAGEMAIL_POLL_PENDING_INTERVAL_SECONDS", "0")
    monkeypatch.setenv("PAGEMAIL_DETAIL_INTERVAL_SECONDS", "-1")
    monkeypatch.setenv("PAGEMAIL_HTTP_TIMEOUT_SECONDS", "inf")

    s = Settings.from_env()
    assert s.poll_pending_interval_seconds == 5.0
    assert s.detail_interval_seconds == 10.0
    assert s.http_timeout_seconds == 30.0
