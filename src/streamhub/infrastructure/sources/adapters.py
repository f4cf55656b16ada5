"""Adapters to convert Pydantic validation models to domain models."""

from __future__ import annotations

from streamhub.domain.sources import site_schema as domain
from streamhub.infrastructure.sources import validation_schema as infra


def to_domain_search_config(pydantic: infra.SearchSection) -> domain.SearchConfig:
    """Convert Pydantic SearchSection to domain model."""
    return domain.SearchConfig(
        path=pydantic.path,
        method=pydantic.method,
        form=dict(pydantic.form),
        format=pydantic.format,
        item=pydantic.item,
        title=pydantic.title,
        link=pydantic.link,
        poster=pydantic.poster,
        poster_attrs=tuple(pydantic.poster_attrs),
        media_type=pydantic.media_type,
        series_markers=tuple(m.lower() for m in pydantic.series_markers),
        fallback_links=pydantic.fallback_links,
        items_key=pydantic.items_key,
        json_fields=domain.JsonSearchFields(
            title=pydantic.fields.title,
            link=pydantic.fields.link,
            poster=pydantic.fields.poster,
            year=pydantic.fields.year,
        ),
    )


def to_domain_detail_config(pydantic: infra.DetailSection) -> domain.DetailConfig:
    """Convert Pydantic DetailSection to domain model."""
    return domain.DetailConfig(
        enabled=pydantic.enabled,
        title=tuple(pydantic.title),
        poster=tuple(pydantic.poster),
        poster_attrs=tuple(pydantic.poster_attrs),
        year=tuple(pydantic.year),
        iframe=tuple(pydantic.iframe),
    )


def to_domain_site_definition(
    pydantic: infra.SiteDefinitionPydantic,
) -> domain.SiteDefinition:
    """Convert Pydantic SiteDefinitionPydantic to domain model."""
    http = pydantic.http
    return domain.SiteDefinition(
        name=pydantic.name,
        version=pydantic.version,
        base_url=str(pydantic.base_url).rstrip("/"),
        search=to_domain_search_config(pydantic.search),
        detail=to_domain_detail_config(pydantic.detail),
        user_agent=http.user_agent if http else None,
        timeout_seconds=http.timeout_seconds if http else None,
    )
