"""
Feed-backed pattern source.

One PatternSource per configured content source. It turns feed items into
scored Documents (fetch_patterns) and answers lexical queries over them
(search_patterns). Feeds, article pages and search indexes are all reused
across calls through the shared TieredCache and a collection hash.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Dict, List, Optional

from .content_extractor import ContentExtractor
from .rss_fetcher import RSSFetcher
from .source_manager import SourceConfig
from .text_normalizer import TextNormalizer
from swift_patterns.cache.tiered_cache import TieredCache
from swift_patterns.common.id_utils import collection_hash, make_document_id
from swift_patterns.common.models import Document, FeedItem
from swift_patterns.config.search_config import CONTENT_CONFIG, SEARCH_CONFIG
from swift_patterns.search.scoring import (
    RelevanceScorer,
    combine_scores,
    detect_topics,
    has_code_content,
)
from swift_patterns.search.search_index import SearchIndex

logger = logging.getLogger(__name__)


class PatternSource:
    """Fetches, scores and searches the documents of one content source."""

    def __init__(
        self,
        config: SourceConfig,
        cache: TieredCache,
        fetcher: Optional[RSSFetcher] = None,
        extractor: Optional[ContentExtractor] = None,
        article_timeout: float = CONTENT_CONFIG['fetch_timeout'],
        excerpt_length: int = CONTENT_CONFIG['excerpt_length']
    ):
        """
        Initialize pattern source.

        Args:
            config: Source configuration
            cache: Shared feed/article/intent cache
            fetcher: Feed fetcher
            extractor: Full-article extractor
            article_timeout: Seconds to wait for one article before
                falling back to feed content
            excerpt_length: Maximum excerpt length
        """
        self.config = config
        self.cache = cache
        self.fetcher = fetcher or RSSFetcher()
        self.extractor = extractor or ContentExtractor()
        self.article_timeout = article_timeout
        self.excerpt_length = excerpt_length

        self.normalizer = TextNormalizer()
        self.scorer = RelevanceScorer(
            config.quality_signals,
            baseline=config.baseline,
            code_bonus=config.code_bonus,
        )

        self._index: Optional[SearchIndex] = None
        self._index_hash: Optional[str] = None
        self.index_builds = 0
        self.feed_available = True

    @property
    def source_id(self) -> str:
        return self.config.source_id

    async def fetch_patterns(self) -> List[Document]:
        """
        Get all documents for this source.

        Served from the feed cache while fresh. A failed feed fetch yields an
        empty list and is not cached, so the next call tries again;
        feed_available reports whether the last call had the feed to work from.

        Returns:
            Documents in feed order
        """
        cached = await self.cache.feeds.get(self.source_id)
        if cached is not None:
            self.feed_available = True
            return list(cached)

        if not self.config.feed_url:
            logger.debug(f"Source {self.source_id} has no feed, nothing to fetch")
            self.feed_available = True
            return []

        items = await self.fetcher.fetch_feed_items(self.config.feed_url)
        self.feed_available = items is not None
        if items is None:
            logger.warning(f"Feed for {self.source_id} unavailable, contributing no results")
            return []

        outcomes = await asyncio.gather(
            *(self._build_document(item) for item in items),
            return_exceptions=True,
        )

        patterns: List[Document] = []
        seen_ids = set()
        for item, outcome in zip(items, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Error processing {item.link or item.id} from {self.source_id}: {outcome}")
                continue
            if outcome.id in seen_ids:
                continue
            seen_ids.add(outcome.id)
            patterns.append(outcome)

        await self.cache.feeds.set(self.source_id, tuple(patterns), self.config.feed_ttl)
        self.invalidate_index()

        logger.info(f"Built {len(patterns)} patterns from {self.source_id}")
        return patterns

    async def search_patterns(self, query: str) -> List[Document]:
        """
        Search this source's documents.

        Args:
            query: Free-text query

        Returns:
            Matching documents with relevance_score replaced by the combined
            lexical/static score, ordered by that score descending
        """
        patterns = await self.fetch_patterns()
        index = self._get_index(patterns)

        results = index.search(
            query,
            fuzzy=SEARCH_CONFIG['fuzzy'],
            prefix=SEARCH_CONFIG['prefix'],
            boost=SEARCH_CONFIG['source_boost'],
        )

        scored = [
            replace(
                result.document,
                relevance_score=combine_scores(result.score, result.document.relevance_score),
            )
            for result in results
        ]
        # Stable: equal scores keep lexical rank order
        scored.sort(key=lambda doc: doc.relevance_score, reverse=True)

        logger.debug(f"{self.source_id}: {len(scored)} results for '{query}'")
        return scored

    def invalidate_index(self) -> None:
        self._index = None
        self._index_hash = None

    def get_statistics(self) -> Dict:
        return {
            'source_id': self.source_id,
            'indexed_documents': len(self._index) if self._index is not None else 0,
            'index_hash': self._index_hash,
            'index_builds': self.index_builds,
        }

    def _get_index(self, patterns: List[Document]) -> SearchIndex:
        """Reuse the current index while the document collection is unchanged."""
        digest = collection_hash(patterns)
        if self._index is not None and self._index_hash == digest:
            return self._index

        index = SearchIndex()
        index.add_documents(patterns)

        self._index = index
        self._index_hash = digest
        self.index_builds += 1
        return index

    async def _build_document(self, item: FeedItem) -> Document:
        """
        Transform one feed item into a scored Document.

        Args:
            item: Feed item

        Returns:
            Document
        """
        rss_content = item.content or item.content_snippet or ''
        content = rss_content

        if self.config.fetch_full_article and item.link:
            content = await self._fetch_article_content(item.link, fallback=rss_content)

        text = f"{item.title} {content}".lower()
        has_code = has_code_content(content)

        return Document(
            id=make_document_id(self.source_id, item.id, item.link),
            title=item.title,
            url=item.link,
            publish_date=item.publish_date,
            excerpt=self.normalizer.extract_excerpt(item.content_snippet, self.excerpt_length),
            content=content,
            topics=tuple(detect_topics(text, self.config.topic_keywords)),
            relevance_score=self.scorer.score(text, has_code),
            has_code=has_code,
            source_id=self.source_id,
        )

    async def _fetch_article_content(self, url: str, fallback: str) -> str:
        """
        Get full article text, falling back to feed content.

        Only successful extractions are cached.

        Args:
            url: Article URL
            fallback: Content to use when the article cannot be fetched

        Returns:
            Article text or fallback
        """
        cached = await self.cache.articles.get(url)
        if cached is not None:
            return cached

        try:
            text = await asyncio.wait_for(
                self.extractor.fetch_article_text(url, self.config.extract_content_fn),
                timeout=self.article_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Timed out fetching article {url}, using feed content")
            return fallback
        except Exception as e:
            logger.warning(f"Error fetching article {url}, using feed content: {e}")
            return fallback

        if not text:
            return fallback

        await self.cache.articles.set(url, text, self.config.article_ttl)
        return text
