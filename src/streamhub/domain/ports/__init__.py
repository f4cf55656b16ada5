from .link_resolver import LinkResolverPort
from .source_endpoint import SourceEndpointPort
from .source_registry import SourceRegistryPort

__all__ = [
    "LinkResolverPort",
    "SourceEndpointPort",
    "SourceRegistryPort",
]
