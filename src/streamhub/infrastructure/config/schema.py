"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class GatewaySourceConfig(BaseModel):
    """One gateway endpoint: remote when ``url`` is set, in-process otherwise."""

    name: str = Field(pattern=r"^[a-z0-9-]+$")
    url: Optional[HttpUrl] = Field(
        default=None,
        description="Remote source adapter URL (POST query JSON).",
    )


class GatewayConfig(BaseModel):
    """Aggregation gateway settings (YAML section: gateway.*)."""

    timeout_seconds: float = Field(
        default=8.0,
        description="Per-source call bound in seconds.",
    )
    sources: List[GatewaySourceConfig] = Field(
        default_factory=list,
        description="Ordered endpoints. Empty: every discovered source, in-process.",
    )

    @field_validator("timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("gateway.timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _validate_unique_names(self) -> "GatewayConfig":
        names = [s.name for s in self.sources]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate gateway source names: {', '.join(duplicates)}")
        return self


class DebridConfig(BaseModel):
    """Link resolution providers (YAML section: debrid.*)."""

    enabled_providers: List[str] = Field(
        default_factory=lambda: ["realdebrid"],
        description="Provider keys accepted by /resolve and the Stremio adapter.",
    )


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (plugins/http/logging/gateway/debrid).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="streamhub", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Sources (YAML section: plugins.plugin_dir)
    plugin_dir: Path = Field(
        default=Path("./plugins"),
        validation_alias=AliasChoices(
            "plugin_dir",
            AliasPath("plugins", "plugin_dir"),
        ),
        description="Directory containing YAML/Python source definitions.",
    )

    # Outbound HTTP for remote endpoints and link resolution (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=15.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="HTTP timeout in seconds for the shared client.",
    )
    http_user_agent: str = Field(
        default="StreamHub/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for the shared client.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    debrid: DebridConfig = Field(default_factory=DebridConfig)

    @field_validator("plugin_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "plugins": {"plugin_dir": str(self.plugin_dir)},
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "gateway": self.gateway.model_dump(mode="json"),
            "debrid": self.debrid.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read STREAMHUB_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - STREAMHUB_PLUGIN_DIR
    - STREAMHUB_GATEWAY_TIMEOUT_SECONDS
    - STREAMHUB_DEBRID_PROVIDERS='["realdebrid"]'
    - STREAMHUB_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="STREAMHUB_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    plugin_dir: Optional[Path] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    gateway_timeout_seconds: Optional[float] = None
    debrid_providers: Optional[List[str]] = None

    @field_validator("plugin_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
