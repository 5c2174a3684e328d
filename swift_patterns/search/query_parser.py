"""
Query validation, normalization and intent keys.

Security:
- Null bytes stripped
- Query length limits enforced

Intent keys identify one logical query shape for the intent cache. Inputs
whose order carries no meaning (source lists) are normalized first, so two
logically identical requests always produce byte-identical keys.
"""

import hashlib
import json
import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .tokenizer import tokenize
from swift_patterns.common.errors import QueryError
from swift_patterns.config.search_config import SEARCH_CONFIG

logger = logging.getLogger(__name__)

WHITESPACE_PATTERN = re.compile(r'\s+')


@dataclass
class ParsedQuery:
    """Parsed query components."""
    raw: str
    normalized: str      # lower-cased, whitespace-collapsed
    terms: List[str]     # tokenized + stemmed

    def has_content(self) -> bool:
        """Check if query has any searchable terms."""
        return bool(self.terms)


class QueryParser:
    """Validate and normalize user queries."""

    # Security: Maximum query length to prevent DoS
    MAX_QUERY_LENGTH = SEARCH_CONFIG['max_query_length']

    def parse(self, query: Optional[str]) -> ParsedQuery:
        """
        Parse a query string.

        Args:
            query: Raw query string from user

        Returns:
            ParsedQuery

        Raises:
            QueryError: If the query is missing, blank or too long
        """
        if not query or not isinstance(query, str):
            raise QueryError("Missing required argument: query")

        if len(query) > self.MAX_QUERY_LENGTH:
            raise QueryError(f"Query too long (max {self.MAX_QUERY_LENGTH} characters)")

        query = self._sanitize_value(query)
        if not query:
            raise QueryError("Missing required argument: query")

        parsed = ParsedQuery(
            raw=query,
            normalized=normalize_query(query),
            terms=tokenize(query),
        )

        logger.debug(f"Parsed query '{query}' -> terms {parsed.terms}")
        return parsed

    def _sanitize_value(self, value: str) -> str:
        # Remove null bytes (security)
        value = value.replace('\x00', '')
        return value.strip()


def normalize_query(query: str) -> str:
    """Lower-case, trim and collapse internal whitespace."""
    return WHITESPACE_PATTERN.sub(' ', (query or '').strip().lower())


def build_intent_key(
    tool: str,
    query: str,
    min_quality: Optional[float] = None,
    sources: Iterable[str] = (),
    require_code: bool = False
) -> str:
    """
    Build the intent cache key for one query shape.

    Args:
        tool: Operation name (e.g. "search_content")
        query: User query (normalized here)
        min_quality: Quality threshold, None when not applicable
        sources: Source IDs searched (order-insensitive)
        require_code: Whether results must contain code

    Returns:
        "{tool}:{sha256 hex}"
    """
    payload = json.dumps(
        {
            'tool': tool,
            'query': normalize_query(query),
            'min_quality': None if min_quality is None else float(min_quality),
            'sources': sorted(set(sources)),
            'require_code': bool(require_code),
        },
        sort_keys=True,
        separators=(',', ':'),
    )
    digest = hashlib.sha256(payload.encode('utf-8')).hexdigest()
    return f"{tool}:{digest}"


def parse_query(query: str) -> ParsedQuery:
    """
    Convenience function to parse query.

    Args:
        query: Raw query string

    Returns:
        ParsedQuery object
    """
    parser = QueryParser()
    return parser.parse(query)
