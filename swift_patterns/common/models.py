"""
Core data structures shared by ingestion, search and caching.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class FeedItem:
    """Raw item as returned by a feed source."""
    id: str                      # guid, may be empty
    title: str
    link: str
    publish_date: str
    content_snippet: str
    content: Optional[str] = None


@dataclass(frozen=True)
class Document:
    """
    A searchable, scored unit of content from one feed item.

    Documents are never mutated. Re-scoring for a query produces a copy via
    dataclasses.replace().
    """
    id: str
    title: str
    url: str
    publish_date: str
    excerpt: str
    content: str
    topics: Tuple[str, ...] = field(default_factory=tuple)
    relevance_score: int = 0
    has_code: bool = False
    source_id: str = ""

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'url': self.url,
            'publish_date': self.publish_date,
            'excerpt': self.excerpt,
            'content': self.content,
            'topics': list(self.topics),
            'relevance_score': self.relevance_score,
            'has_code': self.has_code,
            'source_id': self.source_id,
        }
