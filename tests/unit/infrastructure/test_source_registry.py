"""Tests for SourceRegistry discovery, loading and caching."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from streamhub.domain.exceptions import (
    DuplicateSourceError,
    SourceLoadError,
    SourceNotFoundError,
    SourceValidationError,
)
from streamhub.infrastructure.sources.html_site import HtmlSiteSource
from streamhub.infrastructure.sources.registry import SourceRegistry

_YAML_SOURCE = """\
name: {name}
version: 1.0.0
base_url: https://{name}.example
search:
  path: /search?q={{query}}
  item: article
  link: a
"""

_PY_SOURCE = """\
class _Source:
    name = "{name}"

    async def resolve(self, query):
        return None

    async def cleanup(self):
        self.closed = True

plugin = _Source()
"""


def _write(tmp_path: Path, filename: str, content: str) -> Path:
    path = tmp_path / filename
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


@pytest.fixture()
def registry(tmp_path: Path) -> SourceRegistry:
    return SourceRegistry(tmp_path)


class TestDiscover:
    def test_yaml_and_python_listed(self, registry: SourceRegistry, tmp_path: Path) -> None:
        _write(tmp_path, "alpha.yaml", _YAML_SOURCE.format(name="alpha"))
        _write(tmp_path, "beta.py", _PY_SOURCE.format(name="beta"))
        _write(tmp_path, "notes.txt", "ignored")

        assert registry.list_names() == ["alpha", "beta"]

    def test_underscore_files_skipped(self, registry: SourceRegistry, tmp_path: Path) -> None:
        _write(tmp_path, "_helpers.py", _PY_SOURCE.format(name="helpers"))
        _write(tmp_path, "alpha.yml", _YAML_SOURCE.format(name="alpha"))

        assert registry.list_names() == ["alpha"]

    def test_missing_directory(self, tmp_path: Path) -> None:
        registry = SourceRegistry(tmp_path / "nope")
        assert registry.list_names() == []

    def test_discover_is_idempotent(self, registry: SourceRegistry, tmp_path: Path) -> None:
        _write(tmp_path, "alpha.yaml", _YAML_SOURCE.format(name="alpha"))
        registry.discover()
        _write(tmp_path, "beta.yaml", _YAML_SOURCE.format(name="beta"))
        registry.discover()

        assert registry.list_names() == ["alpha"]

    def test_broken_files_not_listed(self, registry: SourceRegistry, tmp_path: Path) -> None:
        _write(tmp_path, "bad.yaml", "name: [unclosed")
        _write(tmp_path, "bad.py", "raise RuntimeError('boom')\n")
        _write(tmp_path, "ok.yaml", _YAML_SOURCE.format(name="ok"))

        assert registry.list_names() == ["ok"]


class TestGet:
    def test_yaml_wrapped_in_html_adapter(self, registry: SourceRegistry, tmp_path: Path) -> None:
        _write(tmp_path, "alpha.yaml", _YAML_SOURCE.format(name="alpha"))

        source = registry.get("alpha")

        assert isinstance(source, HtmlSiteSource)
        assert source.base_url == "https://alpha.example"

    def test_python_plugin_object_returned(
        self, registry: SourceRegistry, tmp_path: Path
    ) -> None:
        _write(tmp_path, "beta.py", _PY_SOURCE.format(name="beta"))
        assert registry.get("beta").name == "beta"

    def test_cached_instance(self, registry: SourceRegistry, tmp_path: Path) -> None:
        _write(tmp_path, "alpha.yaml", _YAML_SOURCE.format(name="alpha"))
        _write(tmp_path, "beta.py", _PY_SOURCE.format(name="beta"))

        assert registry.get("alpha") is registry.get("alpha")
        assert registry.get("beta") is registry.get("beta")

    def test_not_found(self, registry: SourceRegistry) -> None:
        with pytest.raises(SourceNotFoundError, match="missing"):
            registry.get("missing")

    def test_invalid_yaml_raises_validation_error(
        self, registry: SourceRegistry, tmp_path: Path
    ) -> None:
        _write(
            tmp_path,
            "alpha.yaml",
            """\
            name: alpha
            version: not-semver
            base_url: https://alpha.example
            search:
              path: /search?q={query}
              item: article
              link: a
            """,
        )
        with pytest.raises(SourceValidationError):
            registry.get("alpha")


class TestLoadAll:
    def test_duplicate_names(self, registry: SourceRegistry, tmp_path: Path) -> None:
        _write(tmp_path, "a.yaml", _YAML_SOURCE.format(name="same"))
        _write(tmp_path, "b.yaml", _YAML_SOURCE.format(name="same"))

        with pytest.raises(DuplicateSourceError):
            registry.load_all()

    def test_load_error_surfaces(self, registry: SourceRegistry, tmp_path: Path) -> None:
        _write(tmp_path, "bad.py", "plugin_missing = True\n")

        with pytest.raises(SourceLoadError, match="plugin"):
            registry.load_all()


class TestCleanup:
    @pytest.mark.asyncio
    async def test_closes_loaded_sources(self, registry: SourceRegistry, tmp_path: Path) -> None:
        _write(tmp_path, "beta.py", _PY_SOURCE.format(name="beta"))
        source = registry.get("beta")

        await registry.cleanup()

        assert source.closed is True  # type: ignore[attr-defined]
