from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable

from dotenv import load_dotenv

API_PREFIX = "/api/v1"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 30.0
    retries: int = 2
    retry_backoff_seconds: float = 0.3
    max_connections: int = 10
    verify_ssl: bool = True
    default_quantity: int = 1
    history_limit: int = 50
    lot_expiry_warning_days: int = 30

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()


def _require(values: dict[str, str | None], required: Iterable[str]) -> None:
    missing = [key for key in required if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing required config values: {', '.join(missing)}")


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def normalize_base_url(raw: str) -> str:
    """Strip trailing slashes and make sure the versioned API prefix is present."""
    base = raw.strip().rstrip("/")
    if base.endswith(API_PREFIX):
        return base
    return f"{base}{API_PREFIX}"


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load config from environment with optional .env override."""
    load_dotenv(env_file)

    env_name = (os.getenv("INVCOUNT_ENV") or "dev").strip()
    env_key = env_name.upper()

    api_base_url = (
        (os.getenv(f"INVCOUNT_API_BASE_URL_{env_key}") or "").strip()
        or (os.getenv("INVCOUNT_API_BASE_URL") or "").strip()
    )

    timeout_seconds = _read_float("INVCOUNT_TIMEOUT_SECONDS", "30")
    _validate(
        timeout_seconds > 0,
        f"Invalid INVCOUNT_TIMEOUT_SECONDS: expected > 0, got {timeout_seconds}",
    )

    connect_timeout_seconds = _read_float(
        "INVCOUNT_CONNECT_TIMEOUT_SECONDS", str(min(timeout_seconds, 5.0))
    )
    _validate(
        connect_timeout_seconds > 0,
        (
            "Invalid INVCOUNT_CONNECT_TIMEOUT_SECONDS: "
            f"expected > 0, got {connect_timeout_seconds}"
        ),
    )

    read_timeout_seconds = _read_float(
        "INVCOUNT_READ_TIMEOUT_SECONDS",
        str(max(timeout_seconds, connect_timeout_seconds)),
    )
    _validate(
        read_timeout_seconds > 0,
        f"Invalid INVCOUNT_READ_TIMEOUT_SECONDS: expected > 0, got {read_timeout_seconds}",
    )

    retries = _read_int("INVCOUNT_RETRIES", "2")
    _validate(retries >= 0, f"Invalid INVCOUNT_RETRIES: expected >= 0, got {retries}")

    retry_backoff_seconds = _read_float("INVCOUNT_RETRY_BACKOFF_SECONDS", "0.3")
    _validate(
        retry_backoff_seconds >= 0,
        (
            "Invalid INVCOUNT_RETRY_BACKOFF_SECONDS: "
            f"expected >= 0, got {retry_backoff_seconds}"
        ),
    )

    max_connections = _read_int("INVCOUNT_MAX_CONNECTIONS", "10")
    _validate(
        max_connections >= 1,
        f"Invalid INVCOUNT_MAX_CONNECTIONS: expected >= 1, got {max_connections}",
    )

    default_quantity = _read_int("INVCOUNT_DEFAULT_QUANTITY", "1")
    _validate(
        default_quantity >= 1,
        f"Invalid INVCOUNT_DEFAULT_QUANTITY: expected >= 1, got {default_quantity}",
    )

    history_limit = _read_int("INVCOUNT_HISTORY_LIMIT", "50")
    _validate(
        history_limit >= 1,
        f"Invalid INVCOUNT_HISTORY_LIMIT: expected >= 1, got {history_limit}",
    )

    lot_expiry_warning_days = _read_int("INVCOUNT_LOT_EXPIRY_WARNING_DAYS", "30")
    _validate(
        lot_expiry_warning_days >= 0,
        (
            "Invalid INVCOUNT_LOT_EXPIRY_WARNING_DAYS: "
            f"expected >= 0, got {lot_expiry_warning_days}"
        ),
    )

    verify_ssl = _coerce_bool(os.getenv("INVCOUNT_VERIFY_SSL"), True)

    values = {"INVCOUNT_API_BASE_URL": api_base_url}
    _require(values, ["INVCOUNT_API_BASE_URL"])

    return ClientConfig(
        env_name=env_name,
        api_base_url=normalize_base_url(api_base_url),
        connect_timeout_seconds=connect_timeout_seconds,
        read_timeout_seconds=read_timeout_seconds,
        retries=retries,
        retry_backoff_seconds=retry_backoff_seconds,
        max_connections=max_connections,
        verify_ssl=verify_ssl,
        default_quantity=default_quantity,
        history_limit=history_limit,
        lot_expiry_warning_days=lot_expiry_warning_days,
    )
