from .html_site import HtmlSiteSource
from .httpx_base import HttpxSourceBase, RequestContext
from .loader import load_python_source, load_yaml_source
from .registry import SourceRegistry

__all__ = [
    "HtmlSiteSource",
    "HttpxSourceBase",
    "RequestContext",
    "SourceRegistry",
    "load_python_source",
    "load_yaml_source",
]
