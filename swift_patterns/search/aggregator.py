"""
Concurrent fan-out over pattern sources.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence

from swift_patterns.common.models import Document
from swift_patterns.ingestion.pattern_source import PatternSource

logger = logging.getLogger(__name__)


class SourceAggregator:
    """
    Runs one operation against several sources at once.

    A failing source, or one whose feed was unavailable, is recorded in
    failed_sources; the others still return their results.
    """

    def __init__(self, sources: Sequence[PatternSource]):
        self.sources = list(sources)
        self.failed_sources: List[str] = []

    async def search_all(self, query: str) -> List[Document]:
        """
        Search every source and merge.

        Args:
            query: Free-text query

        Returns:
            All results by relevance descending; ties keep source order
        """
        merged = await self._gather(lambda source: source.search_patterns(query), "search")
        merged.sort(key=lambda doc: doc.relevance_score, reverse=True)
        return merged

    async def fetch_all(self) -> List[Document]:
        """All documents from every source, in source order."""
        return await self._gather(lambda source: source.fetch_patterns(), "fetch")

    async def _gather(
        self,
        operation: Callable[[PatternSource], Awaitable[List[Document]]],
        label: str
    ) -> List[Document]:
        self.failed_sources = []
        if not self.sources:
            return []

        outcomes = await asyncio.gather(
            *(operation(source) for source in self.sources),
            return_exceptions=True,
        )

        documents: List[Document] = []
        for source, outcome in zip(self.sources, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"{label} failed for source {source.source_id}: {outcome}")
                self.failed_sources.append(source.source_id)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            if not source.feed_available:
                logger.warning(f"{label} for source {source.source_id} ran without its feed")
                self.failed_sources.append(source.source_id)
            documents.extend(outcome)

        return documents
