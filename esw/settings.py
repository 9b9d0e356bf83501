from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping


class ConfigError(Exception):
    """Required configuration is missing or invalid."""


def _env_str(environ: Mapping[str, str], name: str) -> str | None:
    raw = environ.get(name)
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Required
    service_name: str
    namespace: str
    app_root: str

    # Cadence
    check_interval_s: int = 5
    http_timeout_ms: int = 5000
    reconnect_delay_s: float = 5.0

    log_level: str = "info"


def load_settings(environ: Mapping[str, str] | None = None, **overrides: Any) -> Settings:
    """Build the process settings once, at startup.

    Environment variables:
      - SERVICE_NAME / NAMESPACE / APP_ROOT (required)
      - CHECK_INTERVAL (seconds, default 5)
      - HTTP_TIMEOUT (milliseconds, default 5000)
      - LOG_LEVEL (default info)

    Keyword overrides that are not None win over the environment.
    """
    env = os.environ if environ is None else environ

    values: dict[str, Any] = {
        "service_name": _env_str(env, "SERVICE_NAME"),
        "namespace": _env_str(env, "NAMESPACE"),
        "app_root": _env_str(env, "APP_ROOT"),
        "check_interval_s": _env_int(env, "CHECK_INTERVAL", 5),
        "http_timeout_ms": _env_int(env, "HTTP_TIMEOUT", 5000),
        "log_level": _env_str(env, "LOG_LEVEL") or "info",
    }
    values.update({k: v for k, v in overrides.items() if v is not None})

    missing = [
        env_name
        for env_name, key in (("SERVICE_NAME", "service_name"), ("NAMESPACE", "namespace"), ("APP_ROOT", "app_root"))
        if not values.get(key)
    ]
    if missing:
        raise ConfigError(f"{', '.join(missing)} {'is' if len(missing) == 1 else 'are'} required")

    if int(values["check_interval_s"]) < 1:
        raise ConfigError("CHECK_INTERVAL must be at least 1 second")
    if int(values["http_timeout_ms"]) < 1:
        raise ConfigError("HTTP_TIMEOUT must be at least 1 millisecond")

    return Settings(**values)
