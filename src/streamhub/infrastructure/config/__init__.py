from __future__ import annotations

from .load import load_config
from .schema import AppConfig, EnvOverrides, GatewaySourceConfig

__all__ = ["AppConfig", "EnvOverrides", "GatewaySourceConfig", "load_config"]
