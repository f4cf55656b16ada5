"""Canonical media entities shared by every pipeline stage.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

MediaType = Literal["movie", "series"]
QueryMediaType = Literal["movie", "series", "any"]

DEFAULT_LIMIT = 10

# Any explicit scheme: http(s), magnet, ftp, ...
_ABSOLUTE_URL_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")
_HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


def is_absolute_url(url: str) -> bool:
    """True when *url* carries an explicit scheme and is not protocol-relative."""
    return bool(url) and not url.startswith("//") and bool(_ABSOLUTE_URL_RE.match(url))


def is_http_url(url: str) -> bool:
    return bool(_HTTP_URL_RE.match(url or ""))


class StreamQuality(str, Enum):
    """Resolution labels recognised in stream URLs and titles."""

    UHD_2160P = "2160p"
    FHD_1080P = "1080p"
    HD_720P = "720p"
    SD_480P = "480p"
    LD_360P = "360p"


@dataclass(frozen=True)
class Subtitle:
    """A subtitle track attached to a stream."""

    url: str
    lang: str | None = None
    label: str | None = None


@dataclass(frozen=True)
class Stream:
    """A resolved playable link.

    ``url`` is always absolute; relative and protocol-relative values must be
    normalised before construction.
    """

    id: str
    url: str
    source: str
    title: str | None = None
    quality: StreamQuality | None = None
    subtitles: tuple[Subtitle, ...] = ()

    def __post_init__(self) -> None:
        if not is_absolute_url(self.url):
            raise ValueError(f"Stream url must be absolute, got: {self.url!r}")

    @property
    def is_indirect(self) -> bool:
        """Magnet-style links need a resolution service before playback."""
        return self.url.lower().startswith("magnet:")


@dataclass
class Item:
    """A candidate title from one source.

    ``id`` is source-local (a page reference or an external key).
    """

    id: str
    title: str
    media_type: MediaType = "movie"
    year: int | None = None
    poster: str | None = None
    streams: list[Stream] = field(default_factory=list)

    @property
    def is_fetchable(self) -> bool:
        return is_http_url(self.id)


@dataclass(frozen=True)
class Query:
    """Normalised client query (aliases already folded by the gateway)."""

    text: str | None = None
    external_id: str | None = None
    direct_reference: str | None = None
    media_type: QueryMediaType = "any"
    year: int | None = None
    season: int | None = None
    episode: int | None = None
    limit: int = DEFAULT_LIMIT

    @property
    def search_text(self) -> str | None:
        """Free text to search for (a non-URL external id counts as text)."""
        if self.text:
            return self.text
        if self.external_id and not is_http_url(self.external_id):
            return self.external_id
        return None

    @property
    def reference(self) -> str | None:
        """Source-native page URL to fetch directly, skipping search."""
        if self.direct_reference:
            return self.direct_reference
        if self.external_id and is_http_url(self.external_id):
            return self.external_id
        return None


@dataclass
class SourceResult:
    """What one source adapter returns."""

    items: list[Item] = field(default_factory=list)
    streams: list[Stream] = field(default_factory=list)


@dataclass(frozen=True)
class SourceFailure:
    """Per-source error recorded by the gateway."""

    kind: Literal["Timeout", "SourceError"]
    message: str

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


@dataclass
class AggregationResult:
    """Merged gateway response.

    ``streams`` concatenates each source's convenience stream list (the
    first resolvable item's streams), in configured source order.
    """

    items: list[Item] = field(default_factory=list)
    streams: list[Stream] = field(default_factory=list)
    source_errors: dict[str, SourceFailure] = field(default_factory=dict)
