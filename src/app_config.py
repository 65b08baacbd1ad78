from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Mapping

from app_config_parser import parse_app_config
from app_config_schema import DEFAULT_CONFIG_FILE, AppConfig, AppConfigurationError
from app_config_validation import ConfigValidationError, ValidationError, ensure_valid

__all__ = [
    "AppConfig",
    "AppConfigurationError",
    "ConfigValidationError",
    "ValidationError",
    "load_app_config",
    "resolve_config_path",
]

# Environment variable -> (table path, key) applied on top of config.toml.
_ENV_OVERRIDES: tuple[tuple[str, tuple[str, ...], str], ...] = (
    ("HALO_WORK_DIR", ("halo",), "work_dir"),
    ("HALO_EXTERNAL_URL", ("halo",), "external_url"),
    ("HALO_USE_ABSOLUTE_PERMALINK", ("halo",), "use_absolute_permalink"),
    ("HALO_SERVER_HOST", ("server",), "host"),
    ("HALO_SERVER_PORT", ("server",), "port"),
)


def resolve_config_path(config_path: str | None = None) -> Path:
    raw = config_path or os.getenv("HALO_CONFIG_FILE") or DEFAULT_CONFIG_FILE
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (Path.cwd() / path).resolve()
    return path


def load_app_config(
    config_path: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load, override from the environment and validate `config.toml`."""
    path = resolve_config_path(config_path)
    if not path.exists():
        raise AppConfigurationError(f"Config file not found: {path}")
    if not path.is_file():
        raise AppConfigurationError(f"Config path is not a file: {path}")

    try:
        with open(path, "rb") as fh:
            raw = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as error:
        raise AppConfigurationError(f"Failed to parse config TOML: {error}") from error

    env = environ if environ is not None else os.environ
    raw = _apply_env_overrides(raw, env)

    config = parse_app_config(raw, base_dir=path.parent, source_file=str(path))
    ensure_valid(config.halo)
    return config


def _apply_env_overrides(
    raw: Mapping[str, Any],
    env: Mapping[str, str],
) -> dict[str, Any]:
    merged = dict(raw)
    for variable, tables, key in _ENV_OVERRIDES:
        value = env.get(variable, "").strip()
        if not value:
            continue
        target = merged
        for table in tables:
            existing = target.get(table)
            if existing is not None and not isinstance(existing, Mapping):
                raise AppConfigurationError(f"[{table}] must be a table.")
            target[table] = dict(existing or {})
            target = target[table]
        target[key] = value
    return merged
