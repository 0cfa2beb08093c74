from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from hashnav.errors import ConfigError

ENV_PREFIX = "HASHNAV_"

# Environment variable -> RouterConfig field.
ROUTER_ENV_FIELDS = {
    "HASHNAV_BASE_URL": "base_url",
    "HASHNAV_LOG_LEVEL": "log_level",
    "HASHNAV_USER_AGENT": "user_agent",
    "HASHNAV_TIMEOUT_SECONDS": "timeout_seconds",
}


def load_env_chain(repo_root: Path) -> dict[str, str]:
    """
    Resolve HASHNAV_* settings in this order:
    1) existing environment variables,
    2) .env in cwd,
    3) .env in repo root.
    Non-empty existing variables are never overwritten; other keys in the
    .env files are ignored. Returns the non-empty HASHNAV_* values.
    """
    for env_path in [Path.cwd() / ".env", repo_root / ".env"]:
        if not env_path.is_file():
            continue
        for key, value in dotenv_values(env_path).items():
            if value is None or not key.startswith(ENV_PREFIX):
                continue
            if not os.environ.get(key, "").strip():
                os.environ[key] = value
    return {
        key: value
        for key, value in os.environ.items()
        if key.startswith(ENV_PREFIX) and value.strip()
    }


def router_overrides(values: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for key, field_name in ROUTER_ENV_FIELDS.items():
        raw = values.get(key)
        if raw is None:
            continue
        if field_name == "timeout_seconds":
            try:
                overrides[field_name] = float(raw)
            except ValueError as exc:
                raise ConfigError(f"{key} must be a number of seconds, got {raw!r}") from exc
        else:
            overrides[field_name] = raw.strip()
    return overrides
