"""
Semantic recall: embedding-based supplement for weak lexical results.

Recall only runs when enabled and the lexical results are empty or all
weak. Whatever happens inside it, the lexical results are still returned;
failures are reported as a degraded outcome instead of raised.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from swift_patterns.common.models import Document
from swift_patterns.config.search_config import SEMANTIC_RECALL_CONFIG
from swift_patterns.indexing.semantic_index import SemanticIndex

logger = logging.getLogger(__name__)


class RecallStatus(str, Enum):
    INACTIVE = "inactive"    # disabled or lexical results strong enough
    EMPTY = "empty"          # ran, nothing new passed the filters
    FOUND = "found"          # ran, added documents
    DEGRADED = "degraded"    # failed; lexical results returned alone


@dataclass
class RecallOutcome:
    status: RecallStatus
    documents: List[Document] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def activated(self) -> bool:
        return self.status != RecallStatus.INACTIVE

    def to_dict(self) -> Dict:
        return {
            'status': self.status.value,
            'added': len(self.documents),
            'error': self.error,
        }


@dataclass
class SemanticRecallConfig:
    enabled: bool = False
    min_lexical_score: float = 0.35
    min_relevance_score: int = 70
    top_k: int = 10

    @classmethod
    def from_dict(cls, config: Dict) -> "SemanticRecallConfig":
        return cls(
            enabled=config.get('enabled', False),
            min_lexical_score=config.get('min_lexical_score', 0.35),
            min_relevance_score=config.get('min_relevance_score', 70),
            top_k=config.get('top_k', 10),
        )


def should_activate(lexical_results: Sequence[Document], min_lexical_score: float) -> bool:
    """
    Whether lexical results are weak enough to need semantic recall.

    Args:
        lexical_results: Ranked lexical results
        min_lexical_score: Threshold on max(relevance_score) / 100

    Returns:
        True when there are no results or the best one is below threshold
    """
    if not lexical_results:
        return True

    best = max(doc.relevance_score for doc in lexical_results) / 100
    return best < min_lexical_score


def merge_results(
    lexical_results: Sequence[Document],
    supplemental: Sequence[Document]
) -> List[Document]:
    """Merge and re-sort by relevance; lexical results win ties."""
    merged = list(lexical_results) + list(supplemental)
    merged.sort(key=lambda doc: doc.relevance_score, reverse=True)
    return merged


class SemanticRecall:
    """Supplements weak lexical results with semantically similar documents."""

    def __init__(
        self,
        config: Optional[SemanticRecallConfig] = None,
        index: Optional[SemanticIndex] = None
    ):
        self.config = config or SemanticRecallConfig.from_dict(SEMANTIC_RECALL_CONFIG)
        self._index = index

    @property
    def index(self) -> SemanticIndex:
        if self._index is None:
            self._index = SemanticIndex()
        return self._index

    async def supplement(
        self,
        query: str,
        lexical_results: Sequence[Document],
        load_documents: Callable[[], Awaitable[List[Document]]],
        require_code: bool = False,
        min_relevance: Optional[int] = None
    ) -> RecallOutcome:
        """
        Find documents lexical search missed.

        Args:
            query: User query
            lexical_results: Results already found lexically
            load_documents: Coroutine function returning the full collection
            require_code: Only supplement documents containing code
            min_relevance: Relevance floor (defaults to min_relevance_score)

        Returns:
            RecallOutcome; documents exclude anything already in lexical_results
        """
        if not self.config.enabled:
            return RecallOutcome(RecallStatus.INACTIVE)

        if not should_activate(lexical_results, self.config.min_lexical_score):
            return RecallOutcome(RecallStatus.INACTIVE)

        floor = self.config.min_relevance_score if min_relevance is None else min_relevance

        try:
            documents = await load_documents()
            self.index.build(documents)
            hits = self.index.search(query, limit=self.config.top_k)
        except Exception as e:
            logger.warning(f"Semantic recall failed for '{query}', returning lexical results: {e}")
            return RecallOutcome(RecallStatus.DEGRADED, error=str(e))

        seen_ids = {doc.id for doc in lexical_results}
        supplemental = []
        for doc, _ in hits:
            if doc.id in seen_ids:
                continue
            if require_code and not doc.has_code:
                continue
            if doc.relevance_score < floor:
                continue
            seen_ids.add(doc.id)
            supplemental.append(doc)

        status = RecallStatus.FOUND if supplemental else RecallStatus.EMPTY
        logger.info(f"Semantic recall for '{query}': {status.value}, {len(supplemental)} added")
        return RecallOutcome(status, supplemental)

    def close(self):
        if self._index is not None:
            self._index.close()
