"""Layered configuration loading: defaults < YAML < env (.env) < CLI."""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_TOP_LEVEL_KEYS = ("app_name", "environment")

# Flat spelling (env vars, CLI flags) -> (section, key).
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "plugin_dir": ("plugins", "plugin_dir"),
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_user_agent": ("http", "user_agent"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
    "gateway_timeout_seconds": ("gateway", "timeout_seconds"),
    "debrid_providers": ("debrid", "enabled_providers"),
}

_SECTIONS = frozenset(section for section, _ in _FLAT_KEYS.values())


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *override* into *base* in place; nested dicts merge, anything else replaces."""
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _deep_merge(current, value)
        else:
            base[key] = value
    return base


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one layer into the sectioned shape ``AppConfig`` validates.

    A layer may mix section blocks (``gateway: {...}``) and flat keys
    (``gateway_timeout_seconds``); flat keys win within the same layer.
    """
    out: dict[str, Any] = {k: layer[k] for k in _TOP_LEVEL_KEYS if k in layer}
    for section in _SECTIONS:
        block = layer.get(section)
        if isinstance(block, Mapping):
            out[section] = dict(block)
    for flat_key, (section, key) in _FLAT_KEYS.items():
        if flat_key in layer:
            out.setdefault(section, {})[key] = layer[flat_key]
    return out


def _require(path: Path) -> Path:
    if not path.exists():
        raise FileNotFoundError(path)
    return path


def _read_yaml_config(config_path: Path) -> dict[str, Any]:
    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Build the validated ``AppConfig`` from every configuration layer.

    Only reads the files it is given; a given file that does not exist
    raises ``FileNotFoundError``.
    """
    # The .env file feeds the environment layer, so it loads first.
    if dotenv_path is not None:
        load_dotenv(_require(dotenv_path), override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_read_yaml_config(_require(config_path)))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _deep_merge(merged, _sectioned(layer))
    return AppConfig.model_validate(merged)
