"""Tiered stream extraction over an already-fetched page or player document.

Strategies run in a fixed order and the first one that emits at least one
stream wins:

1. structured ``file``/``link`` payload (voice list, keyed map, flat URL)
2. raw ``http(s)`` URLs inside that payload, when it is not parseable
3. ``<source src=...>`` media tags
4. ``.m3u8`` URLs anywhere in the text, then ``.mp4``/``.mkv``/``.avi``

Extraction never raises on malformed input; an empty list means "no
playable link found".
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import structlog

from streamhub.domain.entities.media import Stream
from streamhub.domain.entities.player import (
    FlatUrl,
    KeyedMap,
    PlayerEpisode,
    PlayerPayload,
    PlayerSeason,
    VoiceList,
)
from streamhub.infrastructure.common.html_selectors import parse_html, select_items

from .collector import StreamCollector
from .config_values import pick_config_value
from .payload import clean_payload, parse_player_payload

log = structlog.get_logger(__name__)

_NUMBER_RE = re.compile(r"\d+")
# Commas belong to the URL unless they separate entries of a "[label]url,..." list.
_RAW_URL_RE = re.compile(
    r"""https?://(?:[^\s'"<>\[\]{},\\]|,(?!https?:)(?=[^\s'"<>\[\]{},\\]))+""", re.IGNORECASE
)
_HLS_RE = re.compile(r"""https?:[^"'\s<>]+?\.m3u8(?:\?[^"'\s<>]*)?""", re.IGNORECASE)
_FILE_RE = re.compile(
    r"""https?:[^"'\s<>]+?\.(?:mp4|mkv|avi)(?:\?[^"'\s<>]*)?""", re.IGNORECASE
)


@dataclass
class _Extraction:
    """State shared by the tiers of one extraction run."""

    text: str
    season: int | None
    episode: int | None
    collector: StreamCollector
    raw_payload: str | None = None
    payload: PlayerPayload | None = None
    episode_subtitle: str | None = None


# ---------------------------------------------------------------------------
# Season / episode selection
# ---------------------------------------------------------------------------


def number_from_title(title: str | None) -> int | None:
    """First integer in *title* ("2 сезон" -> 2), or None."""
    if not title:
        return None
    match = _NUMBER_RE.search(title)
    return int(match.group(0)) if match else None


def select_episode(
    seasons: Sequence[PlayerSeason],
    season: int | None,
    episode: int | None,
) -> PlayerEpisode | None:
    """Pick the requested episode from a season folder tree.

    Falls back to the first season / first episode when nothing is
    requested or no title carries the requested number.
    """
    if not seasons:
        return None

    chosen: PlayerSeason | None = None
    if season is not None:
        chosen = next((s for s in seasons if number_from_title(s.title) == season), None)
    chosen = chosen or seasons[0]

    if not chosen.episodes:
        return None
    if episode is not None:
        for candidate in chosen.episodes:
            if number_from_title(candidate.title) == episode:
                return candidate
    return chosen.episodes[0]


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------


def _structured_tier(run: _Extraction) -> None:
    payload = run.payload
    collector = run.collector

    if isinstance(payload, FlatUrl):
        collector.add(payload.url)

    elif isinstance(payload, VoiceList):
        # Every voice contributes; do not stop at the first hit.
        for voice in payload.voices:
            if voice.seasons:
                picked = select_episode(voice.seasons, run.season, run.episode)
                if picked is not None:
                    collector.add(
                        picked.file,
                        title=voice.title or picked.title,
                        source=voice.title,
                    )
                    if run.episode_subtitle is None:
                        run.episode_subtitle = picked.subtitle
            if voice.file:
                collector.add(voice.file, title=voice.title, source=voice.title)

    elif isinstance(payload, KeyedMap):
        for entry in payload.entries:
            collector.add(entry.file, title=entry.title)


def _raw_url_tier(run: _Extraction) -> None:
    # Only for payloads that could not be parsed at all.
    if run.raw_payload is None or run.payload is not None:
        return
    cleaned = clean_payload(run.raw_payload).replace("\\/", "/")
    urls = _RAW_URL_RE.findall(cleaned)
    if urls:
        for url in urls:
            run.collector.add(url)
        return
    if cleaned and not cleaned.startswith(("[", "{")):
        run.collector.add(cleaned)
    else:
        log.debug("player_payload_unusable", raw=cleaned[:200])


def _media_tag_tier(run: _Extraction) -> None:
    if "<source" not in run.text.lower():
        return
    soup = parse_html(run.text)
    for tag in select_items(soup, "source[src]"):
        label = tag.get("label") or tag.get("size")
        run.collector.add(str(tag["src"]), title=str(label) if label else None)


def _extension_tier(run: _Extraction) -> None:
    for pattern in (_HLS_RE, _FILE_RE):
        # dict.fromkeys keeps first-seen order while dropping repeats.
        for url in dict.fromkeys(pattern.findall(run.text)):
            run.collector.add(url)
        if len(run.collector):
            return


_TIERS: tuple[tuple[str, Callable[[_Extraction], None]], ...] = (
    ("structured", _structured_tier),
    ("raw_url", _raw_url_tier),
    ("media_tag", _media_tag_tier),
    ("extension", _extension_tier),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_streams(
    text: str,
    season: int | None = None,
    episode: int | None = None,
    *,
    source_name: str = "stream",
) -> list[Stream]:
    """Recover canonical streams from *text* (detail page or player HTML).

    Page-level ``subtitle`` configuration (or, failing that, the selected
    episode's own subtitle) is attached to the first emitted stream only.
    """
    if not text:
        return []

    raw_payload = pick_config_value(text, "file") or pick_config_value(text, "link")
    run = _Extraction(
        text=text,
        season=season,
        episode=episode,
        collector=StreamCollector(source_name),
        raw_payload=raw_payload,
        payload=parse_player_payload(raw_payload) if raw_payload else None,
    )

    for tier_name, tier in _TIERS:
        tier(run)
        if len(run.collector):
            log.debug(
                "extraction_tier_hit",
                source=source_name,
                tier=tier_name,
                count=len(run.collector),
            )
            break
    else:
        log.info("extraction_empty", source=source_name, snippet=text[:200])
        return []

    run.collector.attach_subtitles(
        pick_config_value(text, "subtitle") or run.episode_subtitle
    )
    return run.collector.streams
