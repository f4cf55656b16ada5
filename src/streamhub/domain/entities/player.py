"""Decoded embedded-player configuration.

A player's ``file`` value comes in three shapes; the extraction engine
decodes it into exactly one of the variants below right after parsing
and dispatches on the variant type from then on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class PlayerEpisode:
    title: str | None = None  # "1 серія"
    file: str | None = None
    subtitle: str | None = None


@dataclass(frozen=True)
class PlayerSeason:
    title: str | None = None  # "1 сезон"
    episodes: tuple[PlayerEpisode, ...] = ()


@dataclass(frozen=True)
class PlayerVoice:
    """One audio/translation track, optionally with its own folder tree."""

    title: str | None = None
    file: str | None = None
    seasons: tuple[PlayerSeason, ...] = ()


@dataclass(frozen=True)
class FlatUrl:
    url: str


@dataclass(frozen=True)
class VoiceList:
    voices: tuple[PlayerVoice, ...]


@dataclass(frozen=True)
class KeyedEntry:
    key: str
    file: str | None = None
    title: str | None = None


@dataclass(frozen=True)
class KeyedMap:
    entries: tuple[KeyedEntry, ...]


PlayerPayload = Union[FlatUrl, VoiceList, KeyedMap]
