from __future__ import annotations

import pytest

from invcount_sdk.config import ConfigError, load_config, normalize_base_url


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("INVCOUNT_API_BASE_URL", "INVCOUNT_API_BASE_URL_DEV", "INVCOUNT_ENV"):
        monkeypatch.delenv(key, raising=False)


def test_load_config_requires_base_url() -> None:
    with pytest.raises(ConfigError, match="INVCOUNT_API_BASE_URL"):
        load_config()


def test_load_config_profile(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INVCOUNT_ENV", "staging")
    monkeypatch.setenv("INVCOUNT_API_BASE_URL_STAGING", "https://staging.example.com/")
    cfg = load_config()
    assert cfg.api_base_url == "https://staging.example.com/api/v1"
    assert cfg.env_name == "staging"
    assert cfg.normalized_env == "staging"


def test_load_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INVCOUNT_API_BASE_URL", "https://api.example.com")
    cfg = load_config()
    assert cfg.default_quantity == 1
    assert cfg.history_limit == 50
    assert cfg.lot_expiry_warning_days == 30
    assert cfg.verify_ssl is True


def test_base_url_keeps_existing_api_prefix() -> None:
    assert normalize_base_url("http://localhost:8080/api/v1/") == "http://localhost:8080/api/v1"
    assert normalize_base_url(" http://localhost:8080 ") == "http://localhost:8080/api/v1"


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("INVCOUNT_TIMEOUT_SECONDS", "0"),
        ("INVCOUNT_CONNECT_TIMEOUT_SECONDS", "0"),
        ("INVCOUNT_READ_TIMEOUT_SECONDS", "0"),
        ("INVCOUNT_RETRIES", "-1"),
        ("INVCOUNT_RETRY_BACKOFF_SECONDS", "-0.1"),
        ("INVCOUNT_MAX_CONNECTIONS", "0"),
        ("INVCOUNT_DEFAULT_QUANTITY", "0"),
        ("INVCOUNT_HISTORY_LIMIT", "0"),
        ("INVCOUNT_LOT_EXPIRY_WARNING_DAYS", "-1"),
    ],
)
def test_load_config_rejects_invalid_ranges(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
    monkeypatch.setenv("INVCOUNT_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigError, match=key):
        load_config()


@pytest.mark.parametrize("key", ["INVCOUNT_TIMEOUT_SECONDS", "INVCOUNT_RETRIES", "INVCOUNT_HISTORY_LIMIT"])
def test_load_config_rejects_invalid_types(monkeypatch: pytest.MonkeyPatch, key: str) -> None:
    monkeypatch.setenv("INVCOUNT_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv(key, "abc")

    with pytest.raises(ConfigError, match=key):
        load_config()
