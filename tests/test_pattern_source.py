"""Tests for ingestion.pattern_source."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from swift_patterns.ingestion.pattern_source import PatternSource

from conftest import make_item, make_source_config

ALPHA_FEED = "https://alpha.example.com/feed.rss"


def _source(cache, fetcher, extractor, **overrides) -> PatternSource:
    timeout = overrides.pop("article_timeout", 10)
    return PatternSource(
        make_source_config("alpha", **overrides), cache,
        fetcher=fetcher, extractor=extractor, article_timeout=timeout,
    )


class TestFetchPatterns:
    @pytest.mark.asyncio
    async def test_builds_scored_documents(self, cache, fetcher, extractor) -> None:
        patterns = await _source(cache, fetcher, extractor).fetch_patterns()

        assert [p.id for p in patterns] == ["alpha-a1", "alpha-a2"]
        first = patterns[0]
        assert first.title == "Async Await Patterns"
        assert first.has_code is True
        # baseline 50 + async 6 + pattern 6 + code 10
        assert first.relevance_score == 72
        assert first.topics == ("concurrency",)
        assert first.source_id == "alpha"
        assert first.url == "https://example.com/a1"

    @pytest.mark.asyncio
    async def test_uses_link_when_guid_missing(self, cache, feeds, fetcher, extractor) -> None:
        feeds[ALPHA_FEED] = [make_item("", "No Guid", link="https://example.com/no-guid")]
        patterns = await _source(cache, fetcher, extractor).fetch_patterns()
        assert patterns[0].id == "alpha-https://example.com/no-guid"

    @pytest.mark.asyncio
    async def test_second_call_served_from_feed_cache(self, cache, fetcher, extractor) -> None:
        source = _source(cache, fetcher, extractor)
        first = await source.fetch_patterns()
        second = await source.fetch_patterns()

        assert first == second
        assert fetcher.fetch_feed_items.await_count == 1

    @pytest.mark.asyncio
    async def test_refetches_after_ttl(self, cache, clock, fetcher, extractor) -> None:
        source = _source(cache, fetcher, extractor)
        await source.fetch_patterns()
        clock.advance(3600)
        await source.fetch_patterns()

        assert fetcher.fetch_feed_items.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_fetch_returns_empty_and_is_not_cached(self, cache, feeds, fetcher, extractor) -> None:
        del feeds[ALPHA_FEED]
        source = _source(cache, fetcher, extractor)

        assert await source.fetch_patterns() == []
        assert await source.fetch_patterns() == []
        assert fetcher.fetch_feed_items.await_count == 2
        assert source.feed_available is False

    @pytest.mark.asyncio
    async def test_feed_available_again_after_recovery(self, cache, feeds, fetcher, extractor) -> None:
        items = feeds.pop(ALPHA_FEED)
        source = _source(cache, fetcher, extractor)
        await source.fetch_patterns()
        assert source.feed_available is False

        feeds[ALPHA_FEED] = items
        assert len(await source.fetch_patterns()) == 2
        assert source.feed_available is True

    @pytest.mark.asyncio
    async def test_source_without_feed(self, cache, fetcher, extractor) -> None:
        source = _source(cache, fetcher, extractor, feed_url=None)
        assert await source.fetch_patterns() == []
        fetcher.fetch_feed_items.assert_not_awaited()
        assert source.feed_available is True

    @pytest.mark.asyncio
    async def test_duplicate_items_kept_once(self, cache, feeds, fetcher, extractor) -> None:
        item = make_item("dup", "Twice")
        feeds[ALPHA_FEED] = [item, item]
        patterns = await _source(cache, fetcher, extractor).fetch_patterns()
        assert [p.id for p in patterns] == ["alpha-dup"]


class TestFullArticleFetch:
    @pytest.mark.asyncio
    async def test_article_text_replaces_feed_content(self, cache, fetcher, extractor) -> None:
        extractor.fetch_article_text.return_value = "struct Model { let id: Int }"
        source = _source(cache, fetcher, extractor, fetch_full_article=True)

        patterns = await source.fetch_patterns()

        assert patterns[1].content == "struct Model { let id: Int }"
        assert patterns[1].has_code is True
        assert await cache.articles.get("https://example.com/a2") == "struct Model { let id: Int }"

    @pytest.mark.asyncio
    async def test_article_cache_hit_skips_extractor(self, cache, fetcher, extractor) -> None:
        await cache.articles.set("https://example.com/a1", "cached article")
        await cache.articles.set("https://example.com/a2", "cached article")
        source = _source(cache, fetcher, extractor, fetch_full_article=True)

        patterns = await source.fetch_patterns()

        assert {p.content for p in patterns} == {"cached article"}
        extractor.fetch_article_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout_falls_back_to_feed_content(self, cache, fetcher, extractor) -> None:
        async def slow_fetch(url, extract_fn=None):
            await asyncio.sleep(5)
            return "never"

        extractor.fetch_article_text.side_effect = slow_fetch
        source = _source(cache, fetcher, extractor, fetch_full_article=True, article_timeout=0.01)

        patterns = await source.fetch_patterns()

        assert patterns[0].content == "```func foo() async {}```"
        assert await cache.articles.get("https://example.com/a1") is None

    @pytest.mark.asyncio
    async def test_extractor_error_falls_back(self, cache, fetcher, extractor) -> None:
        extractor.fetch_article_text.side_effect = RuntimeError("blocked")
        source = _source(cache, fetcher, extractor, fetch_full_article=True)

        patterns = await source.fetch_patterns()
        assert patterns[1].content == "A SwiftUI view with a binding."

    @pytest.mark.asyncio
    async def test_passes_source_extract_function(self, cache, fetcher, extractor) -> None:
        def extract(html):
            return html

        extractor.fetch_article_text.return_value = "text"
        source = _source(cache, fetcher, extractor, fetch_full_article=True, extract_content_fn=extract)
        await source.fetch_patterns()

        extractor.fetch_article_text.assert_any_await("https://example.com/a1", extract)


class TestSearchPatterns:
    @pytest.mark.asyncio
    async def test_finds_typo(self, cache, fetcher, extractor) -> None:
        results = await _source(cache, fetcher, extractor).search_patterns("asyc")
        assert results[0].id == "alpha-a1"

    @pytest.mark.asyncio
    async def test_scores_are_combined(self, cache, fetcher, extractor) -> None:
        source = _source(cache, fetcher, extractor)
        results = await source.search_patterns("swiftui")

        assert [r.id for r in results] == ["alpha-a2"]
        assert 0 <= results[0].relevance_score <= 100
        # Cached documents keep their static score
        cached = {p.id: p for p in await source.fetch_patterns()}
        assert cached["alpha-a2"].relevance_score == 56

    @pytest.mark.asyncio
    async def test_sorted_by_relevance(self, cache, fetcher, extractor) -> None:
        results = await _source(cache, fetcher, extractor).search_patterns("async swiftui")
        scores = [r.relevance_score for r in results]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.asyncio
    async def test_index_reused_while_collection_unchanged(self, cache, fetcher, extractor) -> None:
        source = _source(cache, fetcher, extractor)
        await source.search_patterns("async")
        await source.search_patterns("swiftui")

        assert source.index_builds == 1

    @pytest.mark.asyncio
    async def test_index_rebuilt_after_refetch(self, cache, clock, fetcher, extractor) -> None:
        source = _source(cache, fetcher, extractor)
        await source.search_patterns("async")
        clock.advance(3600)
        await source.search_patterns("async")

        assert source.index_builds == 2
        assert source.get_statistics()["indexed_documents"] == 2

    @pytest.mark.asyncio
    async def test_no_matches(self, cache, fetcher, extractor) -> None:
        assert await _source(cache, fetcher, extractor).search_patterns("kubernetes") == []

    @pytest.mark.asyncio
    async def test_fetch_failure_yields_no_results(self, cache, fetcher, extractor) -> None:
        fetcher.fetch_feed_items.side_effect = None
        fetcher.fetch_feed_items.return_value = None
        assert await _source(cache, fetcher, extractor).search_patterns("async") == []

    @pytest.mark.asyncio
    async def test_uses_fetcher_for_feed_url(self, cache, extractor) -> None:
        fetcher = AsyncMock()
        fetcher.fetch_feed_items.return_value = []
        await _source(cache, fetcher, extractor).fetch_patterns()
        fetcher.fetch_feed_items.assert_awaited_once_with(ALPHA_FEED)
