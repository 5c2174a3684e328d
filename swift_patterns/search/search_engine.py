"""
Pattern search engine: the tool operations exposed by the CLI and the API.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence

from .aggregator import SourceAggregator
from .query_parser import QueryParser, build_intent_key
from .semantic_recall import RecallOutcome, RecallStatus, SemanticRecall, merge_results
from .tokenizer import PRESERVE_TERMS
from swift_patterns.cache.tiered_cache import TieredCache
from swift_patterns.common.models import Document
from swift_patterns.ingestion.content_extractor import ContentExtractor
from swift_patterns.ingestion.pattern_source import PatternSource
from swift_patterns.ingestion.rss_fetcher import RSSFetcher
from swift_patterns.ingestion.source_manager import SourceManager

logger = logging.getLogger('search')

DEFAULT_MIN_QUALITY = 60


@dataclass
class SearchOutcome:
    """Ranked results of one tool call."""
    query: str
    results: List[Document]
    recall: RecallOutcome = field(default_factory=lambda: RecallOutcome(RecallStatus.INACTIVE))
    sources: List[str] = field(default_factory=list)
    cached: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'query': self.query,
            'results': [doc.to_dict() for doc in self.results],
            'total': len(self.results),
            'sources': list(self.sources),
            'semantic_recall': self.recall.to_dict(),
            'cached': self.cached,
        }


class PatternSearchEngine:
    """
    Searches enabled Swift content sources.

    Owns the shared cache, one PatternSource per content source, and the
    semantic recall supplement. Construct one per process (or per test).
    """

    def __init__(
        self,
        source_manager: Optional[SourceManager] = None,
        cache: Optional[TieredCache] = None,
        fetcher: Optional[RSSFetcher] = None,
        extractor: Optional[ContentExtractor] = None,
        semantic_recall: Optional[SemanticRecall] = None
    ):
        """
        Initialize search engine.

        Args:
            source_manager: Source definitions and enabled state
            cache: Feed/article/intent cache
            fetcher: Feed fetcher shared by all sources
            extractor: Article extractor shared by all sources
            semantic_recall: Semantic supplement (disabled per its config)
        """
        self.source_manager = source_manager or SourceManager.from_config()
        self.cache = cache or TieredCache()
        self.fetcher = fetcher or RSSFetcher()
        self.extractor = extractor or ContentExtractor()
        self.semantic_recall = semantic_recall or SemanticRecall()

        self.query_parser = QueryParser()
        self._sources: Dict[str, PatternSource] = {}

    def get_pattern_source(self, source_id: str) -> PatternSource:
        """
        Get the engine for one source, creating it on first use.

        Raises:
            UnknownSourceError: Source does not exist
        """
        if source_id not in self._sources:
            config = self.source_manager.require_source(source_id)
            self._sources[source_id] = PatternSource(
                config, self.cache, fetcher=self.fetcher, extractor=self.extractor
            )
        return self._sources[source_id]

    def _searchable_source_ids(self) -> List[str]:
        return [s.source_id for s in self.source_manager.searchable_sources()]

    def _aggregator(self, source_ids: Sequence[str]) -> SourceAggregator:
        return SourceAggregator([self.get_pattern_source(sid) for sid in source_ids])

    async def search_content(self, query: str, require_code: bool = False) -> SearchOutcome:
        """
        Search all enabled sources.

        Args:
            query: Free-text query
            require_code: Only return documents containing code

        Returns:
            SearchOutcome

        Raises:
            QueryError: Missing, blank or oversized query
        """
        parsed = self.query_parser.parse(query)
        source_ids = self._searchable_source_ids()

        intent_key = build_intent_key(
            'search_content', parsed.normalized,
            sources=source_ids, require_code=require_code,
        )
        cached = await self.cache.intents.get(intent_key)
        if cached is not None:
            logger.info(f"Intent cache hit for '{parsed.normalized}'")
            return replace(cached, cached=True)

        aggregator = self._aggregator(source_ids)
        results = await aggregator.search_all(parsed.raw)
        if require_code:
            results = [doc for doc in results if doc.has_code]

        recall = await self.semantic_recall.supplement(
            parsed.raw,
            results,
            self._aggregator(source_ids).fetch_all,
            require_code=require_code,
        )
        results = merge_results(results, recall.documents)

        outcome = SearchOutcome(query=parsed.raw, results=results, recall=recall, sources=source_ids)
        await self._remember(intent_key, outcome, aggregator)

        logger.info(
            f"search_content '{parsed.normalized}': {len(results)} results "
            f"from {len(source_ids)} sources, recall={recall.status.value}"
        )
        return outcome

    async def get_patterns(
        self,
        topic: str,
        source: str = "all",
        min_quality: int = DEFAULT_MIN_QUALITY
    ) -> SearchOutcome:
        """
        Get patterns on a topic above a quality threshold.

        Args:
            topic: Topic query (e.g. "swiftui", "testing")
            source: Source ID or "all" for every enabled source
            min_quality: Minimum relevance score (0-100)

        Returns:
            SearchOutcome

        Raises:
            QueryError: Missing, blank or oversized topic
            UnknownSourceError: Source does not exist
        """
        parsed = self.query_parser.parse(topic)

        if source == "all":
            source_ids = self._searchable_source_ids()
        else:
            config = self.source_manager.require_source(source)
            source_ids = [config.source_id] if config.feed_url else []

        intent_key = build_intent_key(
            'get_swift_pattern', parsed.normalized,
            min_quality=min_quality, sources=source_ids,
        )
        cached = await self.cache.intents.get(intent_key)
        if cached is not None:
            logger.info(f"Intent cache hit for '{parsed.normalized}'")
            return replace(cached, cached=True)

        aggregator = self._aggregator(source_ids)
        results = await aggregator.search_all(parsed.raw)
        results = [doc for doc in results if doc.relevance_score >= min_quality]

        recall = await self.semantic_recall.supplement(
            parsed.raw,
            results,
            self._aggregator(source_ids).fetch_all,
            min_relevance=max(self.semantic_recall.config.min_relevance_score, min_quality),
        )
        results = merge_results(results, recall.documents)

        outcome = SearchOutcome(query=parsed.raw, results=results, recall=recall, sources=source_ids)
        await self._remember(intent_key, outcome, aggregator)

        logger.info(
            f"get_patterns '{parsed.normalized}' (source={source}, min_quality={min_quality}): "
            f"{len(results)} results, recall={recall.status.value}"
        )
        return outcome

    async def _remember(self, intent_key: str, outcome: SearchOutcome, aggregator: SourceAggregator):
        """Cache a final result set unless part of it is missing."""
        if aggregator.failed_sources:
            logger.debug(f"Not caching partial results, failed: {aggregator.failed_sources}")
            return
        if outcome.recall.status == RecallStatus.DEGRADED:
            return
        await self.cache.intents.set(intent_key, outcome)

    async def fetch_all(self) -> List[Document]:
        """All documents of every enabled source."""
        return await self._aggregator(self._searchable_source_ids()).fetch_all()

    def list_sources(self) -> List[Dict[str, Any]]:
        """
        Describe every known source.

        Returns:
            List of dicts with id, name, type, enabled, configured, description
        """
        return [
            {
                'id': config.source_id,
                'name': config.name,
                'type': config.source_type,
                'description': config.description,
                'enabled': self.source_manager.is_enabled(config.source_id),
                'configured': self.source_manager.is_source_configured(config.source_id),
                'requires_auth': config.requires_auth,
            }
            for config in self.source_manager.get_all_sources()
        ]

    def enable_source(self, source_id: str) -> Dict[str, Any]:
        """
        Enable a source.

        Raises:
            UnknownSourceError: Source does not exist
            SourceNotConfiguredError: Source requires auth that is missing
        """
        config = self.source_manager.enable_source(source_id)
        return {'id': config.source_id, 'name': config.name, 'enabled': True}

    def disable_source(self, source_id: str) -> Dict[str, Any]:
        config = self.source_manager.disable_source(source_id)
        return {'id': config.source_id, 'name': config.name, 'enabled': False}

    def known_terms(self) -> List[str]:
        """Topic labels, topic keywords and preserved Swift terms, for suggestions."""
        terms = set(PRESERVE_TERMS)
        for config in self.source_manager.enabled_sources():
            for topic, keywords in config.topic_keywords.items():
                terms.add(topic)
                terms.update(k for k in keywords if ' ' not in k)
        return sorted(terms)

    def get_stats(self) -> Dict[str, Any]:
        return {
            'sources': {
                'total': len(self.source_manager.get_all_sources()),
                'enabled': len(self.source_manager.enabled_sources()),
            },
            'cache': self.cache.stats(),
            'indexes': [source.get_statistics() for source in self._sources.values()],
            'semantic_recall_enabled': self.semantic_recall.config.enabled,
        }

    async def close(self):
        await self.cache.clear()
        self.semantic_recall.close()
