"""Player payload decoding: quasi-JSON text -> closed ``PlayerPayload`` variant."""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

import structlog

from streamhub.domain.entities.player import (
    FlatUrl,
    KeyedEntry,
    KeyedMap,
    PlayerEpisode,
    PlayerPayload,
    PlayerSeason,
    PlayerVoice,
    VoiceList,
)

from .config_values import decode_entities

log = structlog.get_logger(__name__)


def clean_payload(raw: str) -> str:
    """Entity-decode, trim, and drop a trailing statement semicolon."""
    return decode_entities(raw).strip().rstrip(";").strip()


def _candidates(text: str) -> Iterator[str]:
    yield text
    unescaped = text.replace('\\"', '"').replace("\\'", "'").replace("\\/", "/")
    if unescaped != text:
        yield unescaped
    # Single-quoted JS literal -> JSON. Lossy for apostrophes in titles,
    # which is why it is the last resort.
    if "'" in unescaped:
        yield unescaped.replace("'", '"')


def load_quasi_json(raw: str) -> Any | None:
    """Parse loosely-written JSON; None when no rewrite makes it valid."""
    text = clean_payload(raw)
    if not text:
        return None
    for candidate in _candidates(text):
        try:
            return json.loads(candidate)
        except ValueError:
            continue
    log.debug("player_payload_not_json", raw=text[:200])
    return None


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _episode(raw: dict[str, Any]) -> PlayerEpisode:
    return PlayerEpisode(
        title=_text(raw.get("title")),
        file=_text(raw.get("file")),
        subtitle=_text(raw.get("subtitle")),
    )


def _seasons(folder: list[Any]) -> tuple[PlayerSeason, ...]:
    entries = [f for f in folder if isinstance(f, dict)]
    if not entries:
        return ()

    # Single-season players list episodes directly under the voice.
    if all("folder" not in e for e in entries):
        return (PlayerSeason(title=None, episodes=tuple(_episode(e) for e in entries)),)

    seasons: list[PlayerSeason] = []
    for entry in entries:
        episodes = entry.get("folder")
        if not isinstance(episodes, list):
            continue
        seasons.append(
            PlayerSeason(
                title=_text(entry.get("title")),
                episodes=tuple(_episode(e) for e in episodes if isinstance(e, dict)),
            )
        )
    return tuple(seasons)


def _voice(raw: Any) -> PlayerVoice | None:
    if isinstance(raw, str):
        return PlayerVoice(file=_text(raw))
    if not isinstance(raw, dict):
        return None
    folder = raw.get("folder")
    return PlayerVoice(
        title=_text(raw.get("title")),
        file=_text(raw.get("file")),
        seasons=_seasons(folder) if isinstance(folder, list) else (),
    )


def to_payload(parsed: Any) -> PlayerPayload | None:
    """Map a parsed JSON value onto its payload variant."""
    if isinstance(parsed, str):
        return FlatUrl(url=parsed.strip()) if parsed.strip() else None

    if isinstance(parsed, list):
        voices = tuple(v for v in (_voice(raw) for raw in parsed) if v is not None)
        return VoiceList(voices=voices)

    if isinstance(parsed, dict):
        entries: list[KeyedEntry] = []
        for key, value in parsed.items():
            if isinstance(value, str):
                entries.append(KeyedEntry(key=str(key), file=_text(value)))
            elif isinstance(value, dict):
                entries.append(
                    KeyedEntry(
                        key=str(key),
                        file=_text(value.get("file")),
                        title=_text(value.get("title")),
                    )
                )
        return KeyedMap(entries=tuple(entries))

    return None


def parse_player_payload(raw: str) -> PlayerPayload | None:
    """Attempt a structured parse of a player ``file`` value.

    Returns None when the text is not (quasi-)JSON or decodes to a value
    that is none of the known shapes.
    """
    parsed = load_quasi_json(raw)
    if parsed is None:
        return None
    return to_payload(parsed)
