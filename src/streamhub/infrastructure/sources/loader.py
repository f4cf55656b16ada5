from __future__ import annotations

import importlib.util
import inspect
import traceback
from pathlib import Path
from types import ModuleType
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from streamhub.domain.exceptions import SourceLoadError, SourceValidationError
from streamhub.domain.sources import SiteDefinition, SourceProtocol
from streamhub.infrastructure.sources.adapters import to_domain_site_definition
from streamhub.infrastructure.sources.validation_schema import SiteDefinitionPydantic

log = structlog.get_logger(__name__)


def load_yaml_source(path: Path) -> SiteDefinition:
    """Load and validate a YAML site definition, returning the domain model."""
    try:
        raw = path.read_text(encoding="utf-8")
        data = yaml.safe_load(raw)
        if data is None:
            raise SourceValidationError("YAML file is empty")
        if not isinstance(data, dict):
            raise SourceValidationError("YAML root must be a mapping/object")

        # Validate with Pydantic (Infrastructure)
        pydantic_model = SiteDefinitionPydantic.model_validate(data)

        # Convert to domain model
        return to_domain_site_definition(pydantic_model)
    except (OSError, UnicodeDecodeError) as e:
        log.error(
            "source_load_failed",
            source_file=str(path),
            source_type="yaml",
            error_type=type(e).__name__,
            error_message=str(e),
        )
        raise SourceLoadError(str(e)) from e
    except ValidationError as e:
        log.error(
            "source_validation_failed",
            source_file=str(path),
            source_type="yaml",
            error_type="ValidationError",
            error_details=e.errors(),
        )
        raise SourceValidationError(str(e)) from e
    except yaml.YAMLError as e:
        log.error(
            "source_validation_failed",
            source_file=str(path),
            source_type="yaml",
            error_type=type(e).__name__,
            error_message=str(e),
        )
        raise SourceValidationError(str(e)) from e


def _import_module_from_path(path: Path) -> ModuleType:
    module_name = f"streamhub_dynamic_source_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, str(path))
    if spec is None or spec.loader is None:
        raise SourceLoadError(f"Could not create import spec for {path}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)  # type: ignore[union-attr]
    except SyntaxError as e:
        tb = traceback.format_exc()
        raise SourceLoadError(f"SyntaxError while importing {path}:\n{tb}") from e
    except Exception as e:
        tb = traceback.format_exc()
        raise SourceLoadError(f"Error while importing {path}:\n{tb}") from e

    return module


def load_python_source(path: Path) -> SourceProtocol:
    try:
        module = _import_module_from_path(path)
        if not hasattr(module, "plugin"):
            raise SourceLoadError("Source must export 'plugin' variable")

        plugin: Any = getattr(module, "plugin")
        if not inspect.iscoroutinefunction(getattr(plugin, "resolve", None)):
            raise SourceLoadError("Source must have async 'resolve' method")
        if (
            not hasattr(plugin, "name")
            or not isinstance(plugin.name, str)
            or not plugin.name
        ):
            raise SourceLoadError("Source must have non-empty 'name' attribute")

        return plugin
    except SourceLoadError as e:
        log.error(
            "source_load_failed",
            source_file=str(path),
            source_type="python",
            error_type=type(e).__name__,
            error_message=str(e),
        )
        raise
