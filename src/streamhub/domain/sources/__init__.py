from .base import SourceProtocol
from .site_schema import DetailConfig, JsonSearchFields, SearchConfig, SiteDefinition

__all__ = [
    "DetailConfig",
    "JsonSearchFields",
    "SearchConfig",
    "SiteDefinition",
    "SourceProtocol",
]
