"""CSS-selector-based HTML extraction with fallback chains.

Site definitions list several selectors per field; the first selector
that yields a non-empty value wins.  This keeps adapters resilient against
minor layout changes (extra wrapper ``<div>``, renamed CSS class, etc.)
without code changes.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

_YEAR_RE = re.compile(r"(?<!\d)(19\d{2}|20\d{2})(?!\d)")


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string into a BeautifulSoup tree (``lxml`` parser)."""
    return BeautifulSoup(html, "lxml")


def select_items(root: BeautifulSoup | Tag, *selectors: str) -> list[Tag]:
    """Return matches of the **first** selector that matches anything."""
    for sel in selectors:
        items = root.select(sel)
        if items:
            return items
    return []


def first_text(root: BeautifulSoup | Tag, selectors: Iterable[str]) -> str:
    """Text of the first matching element with non-empty text.

    An empty selector reads *root*'s own text.
    """
    for sel in selectors:
        match = root if sel == "" else root.select_one(sel)
        if match is None:
            continue
        text = match.get_text(" ", strip=True)
        if text:
            return text
    return ""


def first_attr(
    root: BeautifulSoup | Tag,
    selectors: Iterable[str],
    attrs: Iterable[str],
) -> str:
    """First non-empty value of any of *attrs* on the first matching element."""
    attr_names = tuple(attrs)
    for sel in selectors:
        match = root if sel == "" else root.select_one(sel)
        if match is None:
            continue
        for attr in attr_names:
            val = match.get(attr)
            if val:
                return str(val).strip()
    return ""


def find_year(text: str) -> int | None:
    """First 19xx/20xx number in *text*."""
    match = _YEAR_RE.search(text or "")
    return int(match.group(1)) if match else None


def absolute_url(base_url: str, href: str | None) -> str | None:
    """Resolve *href* against *base_url*; protocol-relative becomes https.

    Unparseable hrefs (e.g. a broken IPv6 host) yield None.
    """
    if not href:
        return None
    href = href.strip()
    if href.startswith("//"):
        href = "https:" + href
    try:
        return urljoin(base_url, href)
    except ValueError:
        return None
