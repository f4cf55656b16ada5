"""Aggregation gateway: one query fanned out to every configured source."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from streamhub.domain.entities.media import (
    DEFAULT_LIMIT,
    AggregationResult,
    Query,
    QueryMediaType,
    SourceFailure,
    SourceResult,
)
from streamhub.domain.exceptions import InvalidQuery, SourceTimeout
from streamhub.domain.ports.source_endpoint import SourceEndpointPort
from streamhub.infrastructure.common.converters import to_int

log = structlog.get_logger(__name__)

DEFAULT_SOURCE_TIMEOUT = 8.0

# Accepted spellings per canonical field; first non-empty value wins.
TEXT_ALIASES = ("text", "query", "q")
EXTERNAL_ID_ALIASES = ("externalId", "external_id", "imdb", "imdbId", "imdb_id", "kinopoisk")
REFERENCE_ALIASES = ("directReference", "direct_reference", "href")
MEDIA_TYPE_ALIASES = ("mediaType", "media_type", "type")

_MEDIA_TYPES: dict[str, QueryMediaType] = {"movie": "movie", "series": "series", "any": "any"}


def _first_value(raw: Mapping[str, Any], keys: Sequence[str]) -> str | None:
    for key in keys:
        value = raw.get(key)
        if value is None or isinstance(value, (bool, dict, list)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def normalize_query(raw: Mapping[str, Any], *, allow_reference_only: bool = False) -> Query:
    """Fold alias fields into a canonical ``Query``.

    With *allow_reference_only* a direct reference alone is enough (the
    single-source contract); the gateway itself always requires text or an
    external identifier.

    Raises:
        InvalidQuery: nothing to search for or fetch.
    """
    if not isinstance(raw, Mapping):
        raise InvalidQuery("Query must be a JSON object")

    text = _first_value(raw, TEXT_ALIASES)
    external_id = _first_value(raw, EXTERNAL_ID_ALIASES)
    reference = _first_value(raw, REFERENCE_ALIASES)
    if not text and not external_id and not (allow_reference_only and reference):
        raise InvalidQuery("Provide text or externalId")

    media_type = _MEDIA_TYPES.get((_first_value(raw, MEDIA_TYPE_ALIASES) or "").lower(), "any")
    limit = to_int(raw.get("limit"))

    return Query(
        text=text,
        external_id=external_id,
        direct_reference=reference,
        media_type=media_type,
        year=to_int(raw.get("year")),
        season=to_int(raw.get("season")),
        episode=to_int(raw.get("episode")),
        limit=limit if limit is not None and limit >= 1 else DEFAULT_LIMIT,
    )


async def _bounded_resolve(
    endpoint: SourceEndpointPort,
    query: Query,
    timeout: float,
) -> SourceResult:
    """Resolve through *endpoint*; exceeding *timeout* raises ``SourceTimeout``."""
    try:
        return await asyncio.wait_for(endpoint.resolve(query), timeout=timeout)
    except TimeoutError as exc:
        raise SourceTimeout(f"timed out after {timeout}s") from exc


async def _call_source(
    endpoint: SourceEndpointPort,
    query: Query,
    timeout: float,
) -> SourceResult | SourceFailure:
    """One bounded source call; every failure becomes a ``SourceFailure``."""
    try:
        return await _bounded_resolve(endpoint, query, timeout)
    except SourceTimeout as exc:
        log.warning("source_timeout", source=endpoint.name, timeout=timeout)
        return SourceFailure(kind="Timeout", message=str(exc) or type(exc).__name__)
    except Exception as exc:  # noqa: BLE001
        log.warning(
            "source_failed",
            source=endpoint.name,
            error=str(exc),
            exc_info=True,
        )
        return SourceFailure(kind="SourceError", message=str(exc) or type(exc).__name__)


async def aggregate(
    query: Query,
    sources: Sequence[SourceEndpointPort],
    *,
    timeout: float = DEFAULT_SOURCE_TIMEOUT,
) -> AggregationResult:
    """Fan *query* out concurrently and merge in configured source order.

    A slow or failing source never affects its siblings; it only adds an
    entry to ``source_errors``.
    """
    outcomes = await asyncio.gather(*(_call_source(s, query, timeout) for s in sources))

    merged = AggregationResult()
    # gather() keeps argument order, so merging follows configuration order.
    for endpoint, outcome in zip(sources, outcomes):
        if isinstance(outcome, SourceFailure):
            merged.source_errors[endpoint.name] = outcome
            continue
        merged.items.extend(outcome.items)
        merged.streams.extend(outcome.streams)

    log.info(
        "aggregation_complete",
        sources=len(sources),
        failed=len(merged.source_errors),
        items=len(merged.items),
        streams=len(merged.streams),
    )
    return merged


class AggregateUseCase:
    """Validates a raw query, then runs the gateway over configured sources.

    Flow:
        1. Fold aliases and validate (``InvalidQuery`` before any fan-out)
        2. Call every source concurrently, each bounded by the timeout
        3. Merge items/streams in source order, collect per-source errors
    """

    def __init__(
        self,
        sources: Sequence[SourceEndpointPort],
        timeout_seconds: float = DEFAULT_SOURCE_TIMEOUT,
    ) -> None:
        self.sources = list(sources)
        self.timeout_seconds = timeout_seconds

    async def execute(self, raw: Mapping[str, Any]) -> AggregationResult:
        query = normalize_query(raw)
        log.info(
            "aggregation_started",
            text=query.text,
            external_id=query.external_id,
            sources=[s.name for s in self.sources],
        )
        return await aggregate(query, self.sources, timeout=self.timeout_seconds)
