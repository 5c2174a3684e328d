"""
In-memory txtai embeddings index over pattern documents.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from txtai.embeddings import Embeddings

from swift_patterns.common.id_utils import collection_hash
from swift_patterns.common.models import Document
from swift_patterns.config.search_config import (
    EMBEDDING_CONTENT_CHARS,
    TITLE_WEIGHT_MULTIPLIER,
    TXTAI_CONFIG,
)

logger = logging.getLogger(__name__)


class SemanticIndex:
    """
    Embeddings index rebuilt only when the document collection changes.

    Nothing is persisted; documents are resolved back from the collection
    the index was built from.
    """

    def __init__(
        self,
        config: Optional[Dict] = None,
        embeddings_factory: Optional[Callable[[Dict], Any]] = None
    ):
        """
        Initialize semantic index.

        Args:
            config: txtai configuration (uses TXTAI_CONFIG if None)
            embeddings_factory: Callable returning an Embeddings-like object
                for a config
        """
        self.config = dict(config or TXTAI_CONFIG)
        self.embeddings_factory = embeddings_factory or Embeddings

        self.embeddings = None
        self.content_hash: Optional[str] = None
        self._documents: Dict[str, Document] = {}

    def build(self, documents: Iterable[Document]) -> bool:
        """
        Index documents unless the same collection is already indexed.

        Args:
            documents: Documents to index

        Returns:
            True if the index was rebuilt
        """
        documents = list(documents)
        by_id: Dict[str, Document] = {}
        for doc in documents:
            by_id.setdefault(doc.id, doc)

        digest = collection_hash(documents)
        if self.embeddings is not None and digest == self.content_hash:
            # Same ids, but scores and fields may have been refreshed
            self._documents = by_id
            return False

        logger.info(f"Building semantic index over {len(documents)} documents")
        logger.info(f"Using model: {self.config.get('path')}")

        embeddings = self.embeddings_factory(self.config)
        if by_id:
            embeddings.index([
                (doc_id, self.document_text(doc), None)
                for doc_id, doc in by_id.items()
            ])

        self.close()
        self.embeddings = embeddings
        self._documents = by_id
        self.content_hash = digest
        return True

    def search(self, query: str, limit: int = 10) -> List[Tuple[Document, float]]:
        """
        Search the index.

        Args:
            query: Search query
            limit: Maximum results to return

        Returns:
            (document, similarity) pairs, most similar first
        """
        if self.embeddings is None:
            raise RuntimeError("Index not built. Call build() first.")

        if not self._documents:
            return []

        results = []
        for hit in self.embeddings.search(query, limit):
            if isinstance(hit, dict):
                doc_id, score = hit.get('id'), hit.get('score', 0.0)
            else:
                doc_id, score = hit[0], hit[1]

            doc = self._documents.get(doc_id)
            if doc is not None:
                results.append((doc, float(score)))

        return results

    @staticmethod
    def document_text(doc: Document) -> str:
        """Text embedded for a document: weighted title, topics, leading content."""
        title = " ".join([doc.title] * TITLE_WEIGHT_MULTIPLIER)
        topics = " ".join(doc.topics)
        content = (doc.content or "")[:EMBEDDING_CONTENT_CHARS]
        return f"{title} {topics} {content}".strip()

    def count(self) -> int:
        return len(self._documents) if self.embeddings is not None else 0

    def get_index_info(self) -> Dict:
        return {
            'model': self.config.get('path'),
            'loaded': self.embeddings is not None,
            'count': self.count(),
            'content_hash': self.content_hash,
        }

    def close(self):
        """Release the embeddings model."""
        if self.embeddings is not None:
            close = getattr(self.embeddings, 'close', None)
            if close:
                close()
            self.embeddings = None
