"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "streamhub",
    "environment": "dev",
    "plugins": {
        "plugin_dir": "./plugins",
    },
    "http": {
        "timeout_seconds": 15.0,
        "user_agent": "StreamHub/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "gateway": {
        "timeout_seconds": 8.0,
        "sources": [],  # empty: every discovered source, in-process
    },
    "debrid": {
        "enabled_providers": ["realdebrid"],
    },
}
