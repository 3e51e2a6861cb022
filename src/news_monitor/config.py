from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from news_monitor.client import DEFAULT_BASE_URL
from news_monitor.fetcher import DEFAULT_LIMIT, DEFAULT_MAX_WORKERS


class ConfigError(ValueError):
    """Raised when YAML config is invalid."""


@dataclass(frozen=True)
class AppConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout_sec: float = 10
    limit: int = DEFAULT_LIMIT
    max_workers: int = DEFAULT_MAX_WORKERS
    deadline_sec: float | None = None
    refresh_interval_sec: int = 3600


def default_app_config() -> AppConfig:
    return AppConfig()


def _optional_section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must be a mapping")
    return value


def _optional_str(data: dict[str, Any], key: str, default: str, path: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{path}.{key} must be a non-empty string")
    return value.strip()


def _optional_int(data: dict[str, Any], key: str, default: int, minimum: int, path: str) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(f"{path}.{key} must be int >= {minimum}")
    return value


def _optional_seconds(data: dict[str, Any], key: str, default: float | None, path: str) -> float | None:
    value = data.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{path}.{key} must be a number > 0")
    return float(value)


def _read_yaml(path: str | Path) -> dict[str, Any]:
    resolved = Path(path)
    if not resolved.exists():
        raise ConfigError(f"Config file does not exist: {resolved}")
    with resolved.open("r", encoding="utf-8") as handle:
        try:
            payload = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Config file is not valid YAML: {resolved}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Config root must be a mapping: {resolved}")
    return payload


def load_app_config(path: str | Path) -> AppConfig:
    payload = _read_yaml(path)
    defaults = default_app_config()
    api = _optional_section(payload, "api")
    fetch = _optional_section(payload, "fetch")
    refresh = _optional_section(payload, "refresh")

    base_url = _optional_str(api, "base_url", defaults.base_url, "api")
    if not (base_url.startswith("http://") or base_url.startswith("https://")):
        raise ConfigError("api.base_url must start with http:// or https://")

    return AppConfig(
        base_url=base_url.rstrip("/"),
        timeout_sec=_optional_seconds(api, "timeout_sec", defaults.timeout_sec, "api") or defaults.timeout_sec,
        limit=_optional_int(fetch, "limit", defaults.limit, 1, "fetch"),
        max_workers=_optional_int(fetch, "max_workers", defaults.max_workers, 1, "fetch"),
        deadline_sec=_optional_seconds(fetch, "deadline_sec", defaults.deadline_sec, "fetch"),
        refresh_interval_sec=_optional_int(refresh, "interval_sec", defaults.refresh_interval_sec, 1, "refresh"),
    )
