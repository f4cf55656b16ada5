"""Tests for the aggregation gateway use case."""

from __future__ import annotations

import pytest

from streamhub.application.use_cases.aggregate import (
    AggregateUseCase,
    aggregate,
    normalize_query,
)
from streamhub.domain.entities.media import (
    Item,
    Query,
    SourceResult,
    Stream,
    StreamQuality,
)
from streamhub.domain.exceptions import InvalidQuery, SourceTimeout, UpstreamError


def _result(tag: str, *, with_stream: bool = True) -> SourceResult:
    streams = (
        [Stream(id=f"{tag}-0", url=f"https://{tag}.example/1080p.m3u8", source=tag)]
        if with_stream
        else []
    )
    return SourceResult(
        items=[Item(id=f"https://{tag}.example/1", title=f"{tag} title", streams=streams)],
        streams=list(streams),
    )


# ---------------------------------------------------------------------------
# Query normalisation
# ---------------------------------------------------------------------------


class TestNormalizeQuery:
    def test_canonical_fields(self) -> None:
        q = normalize_query(
            {
                "text": "Matrix",
                "externalId": "tt0133093",
                "mediaType": "movie",
                "year": 1999,
                "season": 1,
                "episode": 2,
                "limit": 5,
            }
        )
        assert q == Query(
            text="Matrix",
            external_id="tt0133093",
            media_type="movie",
            year=1999,
            season=1,
            episode=2,
            limit=5,
        )

    @pytest.mark.parametrize("key", ["text", "query", "q"])
    def test_text_aliases(self, key: str) -> None:
        assert normalize_query({key: "Matrix"}).text == "Matrix"

    @pytest.mark.parametrize(
        "key", ["externalId", "external_id", "imdb", "imdbId", "imdb_id", "kinopoisk"]
    )
    def test_external_id_aliases(self, key: str) -> None:
        assert normalize_query({key: "tt0133093"}).external_id == "tt0133093"

    def test_first_non_empty_alias_wins(self) -> None:
        assert normalize_query({"text": "  ", "query": "Wick"}).text == "Wick"

    def test_numeric_strings_coerced(self) -> None:
        q = normalize_query({"q": "x", "year": "1999", "season": "2", "limit": "3"})
        assert (q.year, q.season, q.limit) == (1999, 2, 3)

    def test_integral_floats_coerced(self) -> None:
        q = normalize_query({"q": "x", "year": 1999.0, "episode": 2.5})
        assert q.year == 1999
        assert q.episode is None

    def test_non_numeric_values_ignored(self) -> None:
        q = normalize_query({"q": "x", "year": "nineteen", "episode": True})
        assert q.year is None
        assert q.episode is None

    @pytest.mark.parametrize("limit", [None, 0, -3, "abc"])
    def test_invalid_limit_defaults_to_ten(self, limit: object) -> None:
        assert normalize_query({"q": "x", "limit": limit}).limit == 10

    def test_unknown_media_type_is_any(self) -> None:
        assert normalize_query({"q": "x", "type": "anime"}).media_type == "any"

    def test_media_type_case_insensitive(self) -> None:
        assert normalize_query({"q": "x", "media_type": "Series"}).media_type == "series"

    def test_missing_text_and_external_id_rejected(self) -> None:
        with pytest.raises(InvalidQuery, match="Provide text or externalId"):
            normalize_query({"year": 1999})

    def test_reference_alone_rejected_by_default(self) -> None:
        with pytest.raises(InvalidQuery):
            normalize_query({"href": "https://site/film.html"})

    def test_reference_alone_allowed_for_single_source(self) -> None:
        q = normalize_query({"href": "https://site/film.html"}, allow_reference_only=True)
        assert q.reference == "https://site/film.html"

    def test_non_mapping_rejected(self) -> None:
        with pytest.raises(InvalidQuery, match="JSON object"):
            normalize_query(["Matrix"])  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Fan-out
# ---------------------------------------------------------------------------


class TestAggregate:
    @pytest.mark.asyncio
    async def test_invalid_query_makes_no_calls(self, make_endpoint) -> None:
        a = make_endpoint("a", _result("a"))
        b = make_endpoint("b", _result("b"))
        uc = AggregateUseCase([a, b])

        with pytest.raises(InvalidQuery):
            await uc.execute({"mediaType": "movie", "year": 1999})

        assert a.calls == []
        assert b.calls == []

    @pytest.mark.asyncio
    async def test_timeout_isolated_to_slow_source(self, make_endpoint) -> None:
        fast = make_endpoint("fast", _result("fast"))
        slow = make_endpoint("slow", _result("slow"), delay=1.0)

        result = await aggregate(Query(text="Matrix"), [fast, slow], timeout=0.05)

        assert [i.id for i in result.items] == ["https://fast.example/1"]
        assert [s.id for s in result.streams] == ["fast-0"]
        assert list(result.source_errors) == ["slow"]
        assert result.source_errors["slow"].kind == "Timeout"

    @pytest.mark.asyncio
    async def test_source_error_recorded(self, make_endpoint, failing_endpoint) -> None:
        ok = make_endpoint("ok", _result("ok"))

        result = await aggregate(Query(text="x"), [failing_endpoint, ok])

        assert [i.title for i in result.items] == ["ok title"]
        failure = result.source_errors["broken"]
        assert failure.kind == "SourceError"
        assert "503" in failure.message

    @pytest.mark.asyncio
    async def test_merge_follows_configured_order(self, make_endpoint) -> None:
        # First configured source answers last.
        first = make_endpoint("first", _result("first"), delay=0.05)
        second = make_endpoint("second", _result("second"))
        third = make_endpoint("third", _result("third"), delay=0.02)

        result = await aggregate(Query(text="x"), [first, second, third], timeout=1.0)

        assert [s.source for s in result.streams] == ["first", "second", "third"]
        assert [i.id for i in result.items] == [
            "https://first.example/1",
            "https://second.example/1",
            "https://third.example/1",
        ]

    @pytest.mark.asyncio
    async def test_merge_order_independent_of_arrival(self, make_endpoint) -> None:
        fast_first = [
            make_endpoint("a", _result("a")),
            make_endpoint("b", _result("b"), delay=0.03),
        ]
        slow_first = [
            make_endpoint("a", _result("a"), delay=0.03),
            make_endpoint("b", _result("b")),
        ]

        r1 = await aggregate(Query(text="x"), fast_first, timeout=1.0)
        r2 = await aggregate(Query(text="x"), slow_first, timeout=1.0)

        assert [s.id for s in r1.streams] == [s.id for s in r2.streams] == ["a-0", "b-0"]
        assert [i.id for i in r1.items] == [i.id for i in r2.items]

    @pytest.mark.asyncio
    async def test_every_source_receives_normalised_query(self, make_endpoint) -> None:
        a = make_endpoint("a")
        b = make_endpoint("b")

        await AggregateUseCase([a, b]).execute({"q": "Matrix", "year": "1999"})

        assert a.calls == b.calls == [Query(text="Matrix", year=1999)]

    @pytest.mark.asyncio
    async def test_no_sources_gives_empty_result(self) -> None:
        result = await AggregateUseCase([]).execute({"text": "x"})
        assert result.items == []
        assert result.source_errors == {}

    @pytest.mark.asyncio
    async def test_matrix_scenario_with_one_slow_source(self, make_endpoint) -> None:
        matrix = SourceResult(
            items=[
                Item(
                    id="tt0133093",
                    title="The Matrix",
                    year=1999,
                    streams=[
                        Stream(
                            id="matrix-hd",
                            url="https://cdn.example/matrix/1080p.m3u8",
                            source="sample",
                            quality=StreamQuality.FHD_1080P,
                        )
                    ],
                )
            ],
        )
        matrix.streams = list(matrix.items[0].streams)
        good = make_endpoint("sample", matrix)
        slow = make_endpoint("slow", _result("slow"), delay=1.0)

        result = await AggregateUseCase([good, slow], timeout_seconds=0.05).execute(
            {"text": "Matrix"}
        )

        assert len(result.items) == 1
        assert len(result.streams) == 1
        assert result.streams[0].quality is StreamQuality.FHD_1080P
        assert {k: v.kind for k, v in result.source_errors.items()} == {"slow": "Timeout"}

    @pytest.mark.asyncio
    async def test_exception_without_message_uses_type_name(self, make_endpoint) -> None:
        broken = make_endpoint("broken", error=UpstreamError())
        result = await aggregate(Query(text="x"), [broken])
        assert result.source_errors["broken"].message == "UpstreamError"

    @pytest.mark.asyncio
    async def test_timeout_message(self, make_endpoint) -> None:
        slow = make_endpoint("slow", _result("slow"), delay=1.0)
        result = await aggregate(Query(text="x"), [slow], timeout=0.05)
        assert str(result.source_errors["slow"]) == "Timeout: timed out after 0.05s"

    @pytest.mark.asyncio
    async def test_source_raised_timeout_recorded_as_timeout(self, make_endpoint) -> None:
        remote = make_endpoint("remote", error=SourceTimeout("remote adapter timed out"))
        result = await aggregate(Query(text="x"), [remote])
        assert str(result.source_errors["remote"]) == "Timeout: remote adapter timed out"
