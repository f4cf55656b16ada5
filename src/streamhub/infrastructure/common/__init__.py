"""Common infrastructure utilities."""

from __future__ import annotations

from .converters import to_int
from .html_selectors import absolute_url, find_year, first_attr, first_text, parse_html

__all__ = [
    "absolute_url",
    "find_year",
    "first_attr",
    "first_text",
    "parse_html",
    "to_int",
]
