"""Pydantic validation models for YAML site definitions."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, HttpUrl, field_validator, model_validator

SOURCE_NAME_RE = r"^[a-z0-9-]+$"
SEMVER_RE = r"^\d+\.\d+\.\d+$"


class HttpOverrides(BaseModel):
    timeout_seconds: Optional[float] = None
    user_agent: Optional[str] = None

    @field_validator("timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is None:
            return None
        if v <= 0:
            raise ValueError("http.timeout_seconds must be > 0")
        return v


class JsonFields(BaseModel):
    """Key names inside each JSON search hit."""

    title: str = "name"
    link: str = "link"
    poster: Optional[str] = "poster"
    year: Optional[str] = "year"


class SearchSection(BaseModel):
    """
    Search request and listing selectors.

    Example (html):
      search:
        path: "/index.php?do=search"
        method: POST
        form: {do: search, subaction: search, story: "{query}"}
        item: "article.short"
        title: ".short-title"
        link: "a.short-link"
        poster: "img"
    """

    path: str
    method: Literal["GET", "POST"] = "GET"
    form: Dict[str, str] = Field(default_factory=dict)
    format: Literal["html", "json"] = "html"

    # html listing
    item: Optional[str] = None
    title: Optional[str] = None
    link: Optional[str] = None
    poster: Optional[str] = None
    poster_attrs: List[str] = Field(default_factory=lambda: ["data-src", "src"])
    media_type: Optional[str] = None
    series_markers: List[str] = Field(default_factory=list)
    fallback_links: Optional[str] = None

    # json listing
    items_key: str = "items"
    fields: JsonFields = Field(default_factory=JsonFields)

    @model_validator(mode="after")
    def _validate_listing(self) -> "SearchSection":
        if self.format == "html" and (not self.item or self.link is None):
            raise ValueError("html search requires 'item' and 'link' selectors")
        if "{query}" not in self.path and not any(
            "{query}" in v for v in self.form.values()
        ):
            raise ValueError("search must place '{query}' in 'path' or 'form'")
        return self


class DetailSection(BaseModel):
    enabled: bool = True
    title: List[str] = Field(default_factory=lambda: ["h1"])
    poster: List[str] = Field(default_factory=lambda: ['meta[property="og:image"]'])
    poster_attrs: List[str] = Field(default_factory=lambda: ["content", "src"])
    year: List[str] = Field(default_factory=list)
    iframe: List[str] = Field(default_factory=lambda: ["iframe"])


# === Main Site Definition ===


class SiteDefinitionPydantic(BaseModel):
    """
    Pydantic validation model for YAML site definitions.

    After validation, this is converted to domain.sources.site_schema.SiteDefinition.
    """

    name: str = Field(pattern=SOURCE_NAME_RE)
    version: str = Field(pattern=SEMVER_RE)
    base_url: HttpUrl

    search: SearchSection
    detail: DetailSection = Field(default_factory=DetailSection)

    # Optional per-source overrides for HTTP behaviour
    http: Optional[HttpOverrides] = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        return v.strip()
