"""Integration tests for configuration loading with layered precedence.

Tests the real load_config() function with actual YAML files, environment
variables, and CLI overrides to verify precedence: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from streamhub.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "streamhub-test",
        "environment": "test",
        "plugins": {"plugin_dir": str(tmp_path / "plugins")},
        "http": {
            "timeout_seconds": 12.0,
            "user_agent": "TestAgent/1.0",
        },
        "logging": {"level": "DEBUG", "format": "console"},
        "gateway": {
            "timeout_seconds": 4.0,
            "sources": [
                {"name": "eneyida"},
                {"name": "uaflix", "url": "https://uaflix.example/api/query"},
            ],
        },
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    """Load with no YAML, no ENV, no CLI: pure defaults."""

    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "streamhub"
        assert config.environment == "dev"
        assert config.http_timeout_seconds == 15.0
        assert config.log_level == "INFO"
        assert config.log_format == "console"  # dev -> console
        assert config.gateway.timeout_seconds == 8.0
        assert config.gateway.sources == []
        assert config.debrid.enabled_providers == ["realdebrid"]

    def test_defaults_derive_log_format_from_environment(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"


class TestYamlOverrides:
    """YAML values override defaults."""

    def test_yaml_overrides_defaults(self, yaml_config: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "streamhub-test"
        assert config.environment == "test"
        assert config.http_timeout_seconds == 12.0
        assert config.http_user_agent == "TestAgent/1.0"
        assert config.log_level == "DEBUG"
        assert config.gateway.timeout_seconds == 4.0
        assert [s.name for s in config.gateway.sources] == ["eneyida", "uaflix"]
        assert config.gateway.sources[0].url is None
        assert str(config.gateway.sources[1].url) == "https://uaflix.example/api/query"

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_yaml_partial_override_preserves_defaults(self, tmp_path: Path) -> None:
        """YAML that only sets http.timeout_seconds keeps other defaults."""
        path = tmp_path / "partial.yaml"
        path.write_text(yaml.dump({"http": {"timeout_seconds": 99.0}}), encoding="utf-8")

        config = load_config(config_path=path)
        assert config.http_timeout_seconds == 99.0
        assert config.http_user_agent == "StreamHub/0.1.0"  # default preserved
        assert config.app_name == "streamhub"  # default preserved

    def test_empty_yaml_is_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(config_path=path).app_name == "streamhub"

    def test_non_mapping_yaml_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path=path)

    def test_duplicate_gateway_sources_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "dup.yaml"
        path.write_text(
            yaml.dump({"gateway": {"sources": [{"name": "a"}, {"name": "a"}]}}),
            encoding="utf-8",
        )
        with pytest.raises(ValidationError, match="duplicate"):
            load_config(config_path=path)


class TestEnvOverrides:
    """Environment variables override YAML and defaults."""

    def test_env_overrides_yaml(self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STREAMHUB_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("STREAMHUB_HTTP_TIMEOUT_SECONDS", "60.0")
        monkeypatch.setenv("STREAMHUB_GATEWAY_TIMEOUT_SECONDS", "2.5")

        config = load_config(config_path=yaml_config)
        assert config.log_level == "WARNING"
        assert config.http_timeout_seconds == 60.0
        assert config.gateway.timeout_seconds == 2.5
        # YAML values not overridden by ENV stay
        assert config.app_name == "streamhub-test"
        assert len(config.gateway.sources) == 2

    def test_env_overrides_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STREAMHUB_ENVIRONMENT", "prod")
        monkeypatch.setenv("STREAMHUB_DEBRID_PROVIDERS", '["realdebrid", "alldebrid"]')

        config = load_config()
        assert config.environment == "prod"
        assert config.log_format == "json"  # prod -> json
        assert config.debrid.enabled_providers == ["realdebrid", "alldebrid"]

    def test_dotenv_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # Registers the variable with monkeypatch so teardown removes it again.
        monkeypatch.setenv("STREAMHUB_APP_NAME", "placeholder")
        monkeypatch.delenv("STREAMHUB_APP_NAME")
        dotenv = tmp_path / ".env"
        dotenv.write_text("STREAMHUB_APP_NAME=from-dotenv\n", encoding="utf-8")

        config = load_config(dotenv_path=dotenv)

        assert config.app_name == "from-dotenv"

    def test_missing_dotenv_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "missing.env")


class TestCliOverrides:
    """CLI overrides beat everything (highest precedence)."""

    def test_cli_overrides_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("STREAMHUB_LOG_LEVEL", "WARNING")

        config = load_config(config_path=yaml_config, cli_overrides={"log_level": "ERROR"})
        assert config.log_level == "ERROR"

    def test_cli_overrides_with_sectioned_format(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"gateway": {"timeout_seconds": 1.0}},
        )
        assert config.gateway.timeout_seconds == 1.0
        # Sibling keys of a merged section survive.
        assert len(config.gateway.sources) == 2

    def test_cli_plugin_dir(self, tmp_path: Path) -> None:
        config = load_config(cli_overrides={"plugin_dir": str(tmp_path)})
        assert config.plugin_dir == tmp_path

    def test_cli_flat_keys_fold_into_sections(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"gateway_timeout_seconds": 3.0, "http_user_agent": "Cli/1.0"},
        )
        assert config.gateway.timeout_seconds == 3.0
        assert config.http_user_agent == "Cli/1.0"
        assert [s.name for s in config.gateway.sources] == ["eneyida", "uaflix"]
