from .aggregate import AggregateUseCase, aggregate, normalize_query
from .resolve_links import ResolveLinksUseCase

__all__ = ["AggregateUseCase", "ResolveLinksUseCase", "aggregate", "normalize_query"]
