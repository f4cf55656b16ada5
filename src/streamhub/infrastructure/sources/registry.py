"""Source registry with lazy loading and in-memory caching."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import structlog
import yaml

from streamhub.domain.exceptions import DuplicateSourceError, SourceNotFoundError
from streamhub.domain.sources import SourceProtocol

from .html_site import HtmlSiteSource
from .loader import load_python_source, load_yaml_source

log = structlog.get_logger(__name__)

SourceType = Literal["yaml", "python"]


@dataclass(frozen=True)
class _SourceRef:
    path: Path
    source_type: SourceType


class SourceRegistry:
    """
    Lazy-loading source registry.

    discover():
      - indexes files only (no YAML parsing, no Python execution)

    get()/load_all()/list_names():
      - may load/parse on demand and cache results

    YAML site definitions are wrapped in ``HtmlSiteSource``; Python files
    provide their own ``plugin`` object.  Either way ``get`` returns one
    shared adapter instance per name.
    """

    def __init__(self, plugin_dir: Path) -> None:
        self._plugin_dir = plugin_dir
        self._discovered: bool = False
        self._refs: list[_SourceRef] = []

        self._cache: dict[str, SourceProtocol] = {}
        # Python files are imported once; peeking reuses the instance.
        self._python_by_path: dict[Path, SourceProtocol] = {}

    @property
    def plugin_dir(self) -> Path:
        return self._plugin_dir

    def discover(self) -> None:
        if self._discovered:
            return

        self._discovered = True
        self._refs = []

        if not self._plugin_dir.exists() or not self._plugin_dir.is_dir():
            log.warning("source_directory_not_found", directory=str(self._plugin_dir))
            return

        for path in sorted(self._plugin_dir.iterdir(), key=lambda p: p.name):
            if path.is_dir() or path.name.startswith("_"):
                continue
            suffix = path.suffix.lower()
            if suffix in {".yaml", ".yml"}:
                self._refs.append(_SourceRef(path=path, source_type="yaml"))
            elif suffix == ".py":
                self._refs.append(_SourceRef(path=path, source_type="python"))

        log.info(
            "sources_discovered",
            count=len(self._refs),
            directory=str(self._plugin_dir),
        )

        if not self._refs:
            log.warning("no_sources_found", directory=str(self._plugin_dir))

    def list_names(self) -> list[str]:
        self.discover()

        names: set[str] = set()
        for ref in self._refs:
            name = self._peek_name(ref)
            if name is None:
                continue
            # duplicates are surfaced on load_all()
            names.add(name)

        return sorted(names)

    def get(self, name: str) -> SourceProtocol:
        self.discover()

        cached = self._cache.get(name)
        if cached is not None:
            return cached

        # Find first matching source by peeking the name from the file.
        for ref in self._refs:
            if self._peek_name(ref) != name:
                continue
            return self._load(ref)

        raise SourceNotFoundError(f"Source '{name}' not found")

    def load_all(self) -> None:
        """
        Force-load all discovered sources.

        Note: This may raise DuplicateSourceError/validation/load errors, by design.
        """
        self.discover()

        seen: dict[str, Path] = {}
        for ref in self._refs:
            source = self._load(ref)
            if source.name in seen and seen[source.name] != ref.path:
                raise DuplicateSourceError(f"Source name '{source.name}' already exists")
            seen[source.name] = ref.path

    async def cleanup(self) -> None:
        """Close HTTP clients of every loaded source."""
        for source in self._cache.values():
            closer = getattr(source, "cleanup", None)
            if closer is not None:
                await closer()

    def _load(self, ref: _SourceRef) -> SourceProtocol:
        if ref.source_type == "yaml":
            site = load_yaml_source(ref.path)
            cached = self._cache.get(site.name)
            if cached is not None:
                return cached
            source: SourceProtocol = HtmlSiteSource(site)
        else:
            source = self._python_source(ref.path)
            cached = self._cache.get(source.name)
            if cached is not None:
                return cached

        self._cache[source.name] = source
        log.info("source_loaded", source_name=source.name, source_type=ref.source_type)
        return source

    def _python_source(self, path: Path) -> SourceProtocol:
        source = self._python_by_path.get(path)
        if source is None:
            source = load_python_source(path)
            self._python_by_path[path] = source
        return source

    def _peek_name(self, ref: _SourceRef) -> str | None:
        """
        Peek source name without full validation where possible.

        - YAML: yaml.safe_load + read top-level 'name'
        - Python: import module once and read plugin.name
        """
        if ref.source_type == "yaml":
            try:
                data = yaml.safe_load(ref.path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, yaml.YAMLError):
                return None
            if not isinstance(data, dict):
                return None
            name = data.get("name")
            return name.strip() if isinstance(name, str) and name.strip() else None

        try:
            return self._python_source(ref.path).name
        except Exception:  # noqa: BLE001
            return None
