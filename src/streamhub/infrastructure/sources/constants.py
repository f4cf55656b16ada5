"""Shared constants for source adapters."""

from __future__ import annotations

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)

DEFAULT_CLIENT_TIMEOUT = 15.0

# Upper bound on search hits kept per source, whatever the query asks for.
MAX_SEARCH_RESULTS = 50
