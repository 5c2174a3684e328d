"""Shared fixtures and fakes for the test suite."""

from typing import Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from swift_patterns.cache.tiered_cache import TieredCache
from swift_patterns.common.models import Document, FeedItem
from swift_patterns.indexing.semantic_index import SemanticIndex
from swift_patterns.ingestion.source_manager import SourceConfig, SourceManager
from swift_patterns.search.search_engine import PatternSearchEngine
from swift_patterns.search.semantic_recall import SemanticRecall, SemanticRecallConfig


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEmbeddings:
    """Stands in for txtai Embeddings: returns indexed ids in index order."""

    def __init__(self, config: Optional[Dict] = None) -> None:
        self.config = config
        self.ids: List[str] = []
        self.closed = False

    def index(self, documents) -> None:
        self.ids = [doc_id for doc_id, _, _ in documents]

    def search(self, query: str, limit: int):
        return [(doc_id, 0.9 - i * 0.01) for i, doc_id in enumerate(self.ids[:limit])]

    def close(self) -> None:
        self.closed = True


def make_item(guid: str, title: str, content: str = "", snippet: str = "", link: str = "") -> FeedItem:
    return FeedItem(
        id=guid,
        title=title,
        link=link or f"https://example.com/{guid}",
        publish_date="Mon, 01 Jan 2024 12:00:00 GMT",
        content_snippet=snippet or title,
        content=content or None,
    )


def make_doc(doc_id: str, title: str = "Title", relevance: int = 50, has_code: bool = False,
             content: str = "", topics=()) -> Document:
    return Document(
        id=doc_id,
        title=title,
        url=f"https://example.com/{doc_id}",
        publish_date="",
        excerpt="",
        content=content,
        topics=tuple(topics),
        relevance_score=relevance,
        has_code=has_code,
        source_id=doc_id.split("-")[0],
    )


TOPICS = {
    "concurrency": ["async", "await", "actor"],
    "swiftui": ["swiftui", "view", "binding"],
    "testing": ["xctest", "test", "mock"],
}

SIGNALS = {"async": 6, "pattern": 6, "swiftui": 6, "testing": 7}


def make_source_config(source_id: str, **overrides) -> SourceConfig:
    options = dict(
        source_id=source_id,
        name=f"{source_id.title()} Blog",
        feed_url=f"https://{source_id}.example.com/feed.rss",
        topic_keywords=TOPICS,
        quality_signals=SIGNALS,
    )
    options.update(overrides)
    return SourceConfig(**options)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> TieredCache:
    return TieredCache(feed_ttl=3600, article_ttl=86400, intent_ttl=600, clock=clock)


@pytest.fixture
def feeds() -> Dict[str, List[FeedItem]]:
    """Feed items per feed URL."""
    return {
        "https://alpha.example.com/feed.rss": [
            make_item("a1", "Async Await Patterns", content="```func foo() async {}```"),
            make_item("a2", "Building Lists in SwiftUI", content="A SwiftUI view with a binding."),
        ],
        "https://beta.example.com/feed.rss": [
            make_item("b1", "Testing with XCTest", content="Write a test and a mock for testing."),
            make_item("b2", "Actor Isolation Explained", content="Isolation keeps mutable state safe."),
        ],
    }


@pytest.fixture
def fetcher(feeds) -> AsyncMock:
    mock = AsyncMock()

    async def fetch_feed_items(url):
        items = feeds.get(url)
        return list(items) if items is not None else None

    mock.fetch_feed_items.side_effect = fetch_feed_items
    return mock


@pytest.fixture
def extractor() -> AsyncMock:
    mock = AsyncMock()
    mock.fetch_article_text.return_value = None
    return mock


@pytest.fixture
def source_manager() -> SourceManager:
    return SourceManager(
        [
            make_source_config("alpha"),
            make_source_config("beta"),
            make_source_config(
                "premium",
                name="Premium Posts",
                feed_url=None,
                source_type="premium",
                requires_auth=True,
                auth_env="PREMIUM_TOKEN",
                enabled_by_default=False,
            ),
        ],
        environ={},
    )


def make_engine(source_manager, cache, fetcher, extractor, recall_enabled: bool = False) -> PatternSearchEngine:
    recall = SemanticRecall(
        SemanticRecallConfig(enabled=recall_enabled, min_relevance_score=50),
        index=SemanticIndex(embeddings_factory=FakeEmbeddings),
    )
    return PatternSearchEngine(
        source_manager=source_manager,
        cache=cache,
        fetcher=fetcher,
        extractor=extractor,
        semantic_recall=recall,
    )


@pytest.fixture
def engine(source_manager, cache, fetcher, extractor) -> PatternSearchEngine:
    return make_engine(source_manager, cache, fetcher, extractor)
