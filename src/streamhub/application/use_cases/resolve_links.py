"""Link resolution workflow: rewrite indirect (magnet) streams to direct URLs."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import replace

import structlog

from streamhub.domain.entities.media import Stream
from streamhub.domain.ports.link_resolver import LinkResolverPort

log = structlog.get_logger(__name__)

NO_PROVIDER = "none"


class ResolveLinksUseCase:
    """Best-effort, per-stream resolution of indirect links.

    Streams keep their input order.  Direct links pass through untouched;
    an indirect link whose resolution fails at any step is returned exactly
    as it came in.
    """

    def __init__(self, resolvers: Mapping[str, LinkResolverPort]) -> None:
        self._resolvers = dict(resolvers)

    @property
    def providers(self) -> list[str]:
        return sorted(self._resolvers)

    async def execute(
        self,
        streams: Sequence[Stream],
        provider: str | None,
        token: str | None,
    ) -> list[Stream]:
        key = (provider or NO_PROVIDER).lower()
        resolver = self._resolvers.get(key)
        if key == NO_PROVIDER or resolver is None or not token:
            return list(streams)

        # Independent per stream, so they resolve concurrently.
        return list(
            await asyncio.gather(*(self._resolve_one(s, resolver, token) for s in streams))
        )

    async def _resolve_one(
        self,
        stream: Stream,
        resolver: LinkResolverPort,
        token: str,
    ) -> Stream:
        if not stream.is_indirect:
            return stream
        try:
            direct = await resolver.resolve(stream.url, token)
            resolved = replace(stream, url=direct, source=f"{stream.source} ({resolver.label})")
        except Exception:  # noqa: BLE001
            log.warning(
                "link_resolution_failed",
                provider=resolver.name,
                stream_id=stream.id,
                exc_info=True,
            )
            return stream

        log.info("link_resolved", provider=resolver.name, stream_id=stream.id)
        return resolved
