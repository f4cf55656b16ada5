"""Tests for tiered stream extraction."""

from __future__ import annotations

import json

import pytest

from streamhub.domain.entities.media import StreamQuality
from streamhub.domain.entities.player import PlayerEpisode, PlayerSeason
from streamhub.infrastructure.extraction import extract_streams, select_episode
from streamhub.infrastructure.extraction.engine import number_from_title


def _player(payload: object) -> str:
    """Player page with a Playerjs config whose ``file`` is JSON in single quotes."""
    return (
        "<html><body><div id='player'></div><script>"
        f"var player = new Playerjs({{id:'player', file:'{json.dumps(payload, ensure_ascii=False)}'}});"
        "</script></body></html>"
    )


_TWO_SEASONS = [
    {
        "title": "Dub",
        "folder": [
            {
                "title": "Сезон 1",
                "folder": [
                    {"title": "Серія 1", "file": "https://x/s1e1.m3u8"},
                    {"title": "Серія 2", "file": "https://x/s1e2.m3u8"},
                ],
            },
            {
                "title": "Сезон 2",
                "folder": [
                    {"title": "Серія 1", "file": "https://x/s2e1.m3u8"},
                    {"title": "Серія 2", "file": "https://x/s2e2.m3u8"},
                ],
            },
        ],
    }
]


# ---------------------------------------------------------------------------
# Structured tier
# ---------------------------------------------------------------------------


class TestStructuredTier:
    def test_escaped_voice_list_payload(self) -> None:
        text = json.dumps({"file": json.dumps([{"title": "EN", "file": "https://x/a.mp4"}])})

        streams = extract_streams(text)

        assert len(streams) == 1
        assert streams[0].url == "https://x/a.mp4"
        assert streams[0].source == "EN"
        assert streams[0].title == "EN"

    def test_lower_tiers_not_used_when_structured_hits(self) -> None:
        text = _player([{"title": "EN", "file": "https://x/a.mp4"}]) + (
            "<video><source src='https://x/other.mp4'></video> https://x/extra.m3u8"
        )

        streams = extract_streams(text)

        assert [s.url for s in streams] == ["https://x/a.mp4"]

    def test_every_voice_contributes(self) -> None:
        text = _player(
            [
                {"title": "UA", "file": "https://x/ua.m3u8"},
                {"title": "EN", "file": "//x/en.m3u8"},
            ]
        )

        streams = extract_streams(text, source_name="eneyida")

        assert [(s.id, s.source, s.url) for s in streams] == [
            ("eneyida-0", "UA", "https://x/ua.m3u8"),
            ("eneyida-1", "EN", "https://x/en.m3u8"),
        ]

    def test_plain_url_payload(self) -> None:
        streams = extract_streams("new Playerjs({file:\"https://cdn/x/720/index.m3u8\"});")

        # A bare URL is not JSON; the raw URL tier picks it up.
        assert [s.url for s in streams] == ["https://cdn/x/720/index.m3u8"]
        assert streams[0].quality is StreamQuality.HD_720P

    def test_json_string_payload(self) -> None:
        text = json.dumps({"file": json.dumps("https://cdn/x.m3u8")})
        assert [s.url for s in extract_streams(text)] == ["https://cdn/x.m3u8"]

    def test_keyed_map(self) -> None:
        text = _player({"720p": "https://x/720.mp4", "1080p": {"file": "https://x/1080.mp4"}})

        streams = extract_streams(text)

        assert [s.url for s in streams] == ["https://x/720.mp4", "https://x/1080.mp4"]
        assert [s.quality for s in streams] == [StreamQuality.HD_720P, StreamQuality.FHD_1080P]

    def test_link_key_fallback(self) -> None:
        text = "<script>player.link = //cdn.example/hd/index.m3u8;</script>"
        assert [s.url for s in extract_streams(text)] == ["https://cdn.example/hd/index.m3u8"]


# ---------------------------------------------------------------------------
# Season / episode selection
# ---------------------------------------------------------------------------


class TestSeasonEpisode:
    def test_requested_season_and_episode(self) -> None:
        streams = extract_streams(_player(_TWO_SEASONS), season=2, episode=1)
        assert [s.url for s in streams] == ["https://x/s2e1.m3u8"]
        assert streams[0].source == "Dub"

    def test_defaults_to_first_season_first_episode(self) -> None:
        streams = extract_streams(_player(_TWO_SEASONS))
        assert [s.url for s in streams] == ["https://x/s1e1.m3u8"]

    def test_unknown_season_falls_back_to_first(self) -> None:
        streams = extract_streams(_player(_TWO_SEASONS), season=9, episode=2)
        assert [s.url for s in streams] == ["https://x/s1e2.m3u8"]

    def test_episode_subtitle_attached(self) -> None:
        payload = [
            {
                "title": "Dub",
                "folder": [
                    {"title": "1", "file": "https://x/e1.m3u8", "subtitle": "[EN]https://x/e1.vtt"}
                ],
            }
        ]
        [stream] = extract_streams(_player(payload), season=1, episode=1)
        assert [s.url for s in stream.subtitles] == ["https://x/e1.vtt"]

    def test_page_subtitle_wins(self) -> None:
        text = _player([{"title": "EN", "file": "https://x/a.mp4"}]) + (
            "<script>var c = {subtitle: '[UA]https://x/ua.vtt'};</script>"
        )
        [stream] = extract_streams(text)
        assert stream.subtitles[0].label == "UA"


class TestSelectEpisode:
    _SEASONS = (
        PlayerSeason(title="1 сезон", episodes=(PlayerEpisode(title="1", file="a"),)),
        PlayerSeason(
            title="2 сезон",
            episodes=(PlayerEpisode(title="1", file="b"), PlayerEpisode(title="2", file="c")),
        ),
    )

    def test_exact(self) -> None:
        assert select_episode(self._SEASONS, 2, 2) == PlayerEpisode(title="2", file="c")

    def test_missing_episode_uses_first_of_season(self) -> None:
        assert select_episode(self._SEASONS, 2, 7) == PlayerEpisode(title="1", file="b")

    def test_empty(self) -> None:
        assert select_episode((), 1, 1) is None

    @pytest.mark.parametrize(
        ("title", "expected"),
        [("Сезон 12", 12), ("3 серія", 3), ("Finale", None), (None, None)],
    )
    def test_number_from_title(self, title: str | None, expected: int | None) -> None:
        assert number_from_title(title) == expected


# ---------------------------------------------------------------------------
# Fallback tiers
# ---------------------------------------------------------------------------


class TestFallbackTiers:
    def test_malformed_payload_raw_url(self) -> None:
        text = "<script>new Playerjs({file:'[{\"title\":\"EN\",\"file\":\"https://x/b.m3u8\"'});</script>"

        streams = extract_streams(text)

        assert [s.url for s in streams] == ["https://x/b.m3u8"]

    def test_raw_url_keeps_commas_in_query(self) -> None:
        text = "<script>new Playerjs({file:'[{\"file\":\"https://x/a.m3u8?ids=1,2,3\"'});</script>"

        streams = extract_streams(text)

        assert [s.url for s in streams] == ["https://x/a.m3u8?ids=1,2,3"]

    def test_raw_url_splits_labelled_list(self) -> None:
        text = "new Playerjs({file:'[360p]https://x/360.mp4,[720p]https://x/720.mp4'});"

        streams = extract_streams(text)

        assert [s.url for s in streams] == ["https://x/360.mp4", "https://x/720.mp4"]

    def test_media_source_tags(self) -> None:
        html = (
            "<video>"
            "<source src='//cdn/x/720.mp4' label='720p'>"
            "<source src='https://cdn/x/1080.mp4' size='1080'>"
            "</video>"
        )

        streams = extract_streams(html)

        assert [s.url for s in streams] == ["https://cdn/x/720.mp4", "https://cdn/x/1080.mp4"]
        assert [s.title for s in streams] == ["720p", "1080"]

    def test_hls_preferred_over_files(self) -> None:
        text = "a='https://x/a.mp4'; b='https://x/master.m3u8?t=1'; c='https://x/master.m3u8?t=1'"

        streams = extract_streams(text)

        assert [s.url for s in streams] == ["https://x/master.m3u8?t=1"]

    def test_progressive_files(self) -> None:
        text = 'href="https://x/a.mkv" href="https://x/b.avi" href="https://x/c.txt"'
        assert [s.url for s in extract_streams(text)] == ["https://x/a.mkv", "https://x/b.avi"]

    def test_nothing_found(self) -> None:
        assert extract_streams("<html><p>No player here</p></html>") == []

    def test_empty_text(self) -> None:
        assert extract_streams("") == []

    def test_never_emits_protocol_relative_urls(self) -> None:
        text = _player([{"title": "A", "file": "//x/a.m3u8"}, {"title": "B", "file": "/b.m3u8"}])

        streams = extract_streams(text)

        assert [s.url for s in streams] == ["https://x/a.m3u8"]
        assert all(not s.url.startswith("//") for s in streams)
