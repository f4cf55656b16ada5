from .endpoints import HttpSourceEndpoint, LocalSourceEndpoint

__all__ = [
    "HttpSourceEndpoint",
    "LocalSourceEndpoint",
]
