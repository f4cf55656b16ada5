from .media import (
    DEFAULT_LIMIT,
    AggregationResult,
    Item,
    MediaType,
    Query,
    QueryMediaType,
    SourceFailure,
    SourceResult,
    Stream,
    StreamQuality,
    Subtitle,
    is_absolute_url,
    is_http_url,
)
from .player import (
    FlatUrl,
    KeyedEntry,
    KeyedMap,
    PlayerEpisode,
    PlayerPayload,
    PlayerSeason,
    PlayerVoice,
    VoiceList,
)

__all__ = [
    "DEFAULT_LIMIT",
    "AggregationResult",
    "FlatUrl",
    "Item",
    "KeyedEntry",
    "KeyedMap",
    "MediaType",
    "PlayerEpisode",
    "PlayerPayload",
    "PlayerSeason",
    "PlayerVoice",
    "Query",
    "QueryMediaType",
    "SourceFailure",
    "SourceResult",
    "Stream",
    "StreamQuality",
    "Subtitle",
    "VoiceList",
    "is_absolute_url",
    "is_http_url",
]
