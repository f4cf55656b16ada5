"""Stream construction: URL normalisation, quality inference, subtitles."""

from __future__ import annotations

import re
from dataclasses import replace

from streamhub.domain.entities.media import Stream, StreamQuality, Subtitle

_HTTP_RE = re.compile(r"^https?://", re.IGNORECASE)
_QUALITY_RE = re.compile(r"(2160|1080|720|480|360)p?", re.IGNORECASE)
_SUBTITLE_RE = re.compile(r"^\[([^\]]+)\]\s*(\S+)$")


def normalize_stream_url(raw: str | None) -> str | None:
    """Return a playable absolute ``http(s)`` URL, or None to discard *raw*."""
    if not raw:
        return None
    url = raw.strip().replace("\\/", "/")
    if url.startswith("//"):
        url = "https:" + url
    if not _HTTP_RE.match(url):
        return None
    return url


def infer_quality(url: str, title: str | None = None) -> StreamQuality | None:
    """Resolution from the URL, falling back to the title."""
    for text in (url, title):
        if not text:
            continue
        match = _QUALITY_RE.search(text)
        if match:
            return StreamQuality(f"{match.group(1)}p")
    return None


def parse_subtitles(raw: str | None) -> tuple[Subtitle, ...]:
    """Parse ``[Ukrainian]https://a.vtt,[English]https://b.vtt``."""
    if not raw:
        return ()
    subtitles: list[Subtitle] = []
    for part in raw.split(","):
        match = _SUBTITLE_RE.match(part.strip())
        if not match:
            continue
        url = normalize_stream_url(match.group(2))
        if url is None:
            continue
        label = match.group(1).strip()
        subtitles.append(Subtitle(url=url, lang=label, label=label))
    return tuple(subtitles)


class StreamCollector:
    """Accumulates streams for one extraction run.

    Ids are ``<source>-<index>`` in emission order; values that do not
    normalise to an ``http(s)`` URL are silently dropped.
    """

    def __init__(self, source_name: str) -> None:
        self.source_name = source_name
        self.streams: list[Stream] = []

    def __len__(self) -> int:
        return len(self.streams)

    def add(
        self,
        raw_url: str | None,
        *,
        title: str | None = None,
        source: str | None = None,
    ) -> bool:
        url = normalize_stream_url(raw_url)
        if url is None:
            return False
        quality = infer_quality(url, title)
        self.streams.append(
            Stream(
                id=f"{self.source_name}-{len(self.streams)}",
                url=url,
                source=source or self.source_name,
                title=title or (quality.value if quality else None) or "Stream",
                quality=quality,
            )
        )
        return True

    def attach_subtitles(self, raw: str | None) -> None:
        """Attach parsed subtitles to the first stream only."""
        if not self.streams:
            return
        subtitles = parse_subtitles(raw)
        if subtitles:
            self.streams[0] = replace(self.streams[0], subtitles=subtitles)
