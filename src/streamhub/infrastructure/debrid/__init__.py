"""Link resolution service clients, keyed by provider name."""

from __future__ import annotations

from collections.abc import Iterable

import httpx

from streamhub.domain.ports.link_resolver import LinkResolverPort

from .realdebrid import RealDebridResolver

_FACTORIES = {
    "realdebrid": RealDebridResolver,
}


def build_link_resolvers(
    enabled: Iterable[str],
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, LinkResolverPort]:
    """Instantiate the enabled providers; unknown names are skipped."""
    resolvers: dict[str, LinkResolverPort] = {}
    for name in enabled:
        factory = _FACTORIES.get(name.lower())
        if factory is not None:
            resolvers[name.lower()] = factory(http_client)
    return resolvers


__all__ = ["RealDebridResolver", "build_link_resolvers"]
