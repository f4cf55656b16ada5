"""Stream extraction from fetched pages and embedded player documents."""

from __future__ import annotations

from .collector import infer_quality, normalize_stream_url, parse_subtitles
from .config_values import pick_config_value
from .engine import extract_streams, select_episode
from .payload import parse_player_payload

__all__ = [
    "extract_streams",
    "infer_quality",
    "normalize_stream_url",
    "parse_player_payload",
    "parse_subtitles",
    "pick_config_value",
    "select_episode",
]
