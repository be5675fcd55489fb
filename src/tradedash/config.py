from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .settings import Settings

ENV_PREFIX = "TRADEDASH_"
_RESERVED_ENV = {"CONFIG", "LOG_LEVEL"}


def _deep_set(obj: dict[str, Any], path: list[str], value: Any) -> None:
    cur: dict[str, Any] = obj
    for key in path[:-1]:
        nxt = cur.get(key)
        if not isinstance(nxt, dict):
            nxt = {}
            cur[key] = nxt
        cur = nxt
    cur[path[-1]] = value


def _parse_env_value(raw: str) -> Any:
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


def _apply_env_overrides(
    data: dict[str, Any],
    environ: dict[str, str] | None = None,
    *,
    prefix: str = ENV_PREFIX,
) -> dict[str, Any]:
    """Overlay ``TRADEDASH_SECTION__KEY=value`` variables onto the YAML data.

    ``TRADEDASH_GATEWAY__PORT=4000`` sets ``gateway.port``; values are parsed
    as YAML so numbers and booleans keep their types.
    """
    merged: dict[str, Any] = dict(data)
    environ = os.environ if environ is None else environ

    for key, raw_value in environ.items():
        if not key.startswith(prefix):
            continue

        remainder = key[len(prefix) :]
        if remainder in _RESERVED_ENV:
            continue

        path = [p.lower() for p in remainder.split("__") if p]
        if not path:
            continue

        _deep_set(merged, path, _parse_env_value(raw_value))

    return merged


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from YAML plus environment overrides.

    A missing file yields defaults; nothing is required to run.

    Raises:
        ValueError: If the file root is not a mapping or validation fails
    """
    if config_path is None:
        config_path = os.environ.get(f"{ENV_PREFIX}CONFIG", "config.yml")

    path = Path(config_path)
    if path.exists():
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
        if loaded is None:
            data: dict[str, Any] = {}
        elif isinstance(loaded, dict):
            data = loaded
        else:
            raise ValueError(f"Config root must be a mapping, got: {type(loaded)!r}")
    else:
        data = {}

    data = _apply_env_overrides(data)

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc
