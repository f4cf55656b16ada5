# src/streamhub/domain/sources/site_schema.py
"""Pure domain models for YAML site definitions (framework-free).

A site definition is the swappable selector table for one upstream page
layout; the generic HTML site adapter consumes it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True)
class JsonSearchFields:
    """Key names inside each JSON search hit."""

    title: str = "name"
    link: str = "link"
    poster: str | None = "poster"
    year: str | None = "year"


@dataclass(frozen=True)
class SearchConfig:
    """How to query the site's search endpoint and read the listing."""

    path: str
    method: Literal["GET", "POST"] = "GET"
    form: dict[str, str] = field(default_factory=dict)
    format: Literal["html", "json"] = "html"

    # html listing
    item: str | None = None
    title: str | None = None
    link: str | None = None
    poster: str | None = None
    poster_attrs: tuple[str, ...] = ("data-src", "src")
    media_type: str | None = None
    series_markers: tuple[str, ...] = ()
    fallback_links: str | None = None

    # json listing
    items_key: str = "items"
    json_fields: JsonSearchFields = field(default_factory=JsonSearchFields)


@dataclass(frozen=True)
class DetailConfig:
    """Markers on the detail page; ``iframe`` selectors are tried in order."""

    enabled: bool = True
    title: tuple[str, ...] = ("h1",)
    poster: tuple[str, ...] = ('meta[property="og:image"]',)
    poster_attrs: tuple[str, ...] = ("content", "src")
    year: tuple[str, ...] = ()
    iframe: tuple[str, ...] = ("iframe",)


@dataclass(frozen=True)
class SiteDefinition:
    """Validated YAML site definition."""

    name: str
    version: str
    base_url: str
    search: SearchConfig
    detail: DetailConfig = field(default_factory=DetailConfig)
    user_agent: str | None = None
    timeout_seconds: float | None = None
