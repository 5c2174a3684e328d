"""
ID utilities for pattern documents.

This module provides a consistent ID scheme for every document produced by a
content source:

    "{source_id}-{guid}"   → "sundell-https://www.swiftbysundell.com/articles/x"

Why source-prefixed IDs:
    - Zero collision risk across sources (prefix prevents overlap)
    - Deterministic (the same feed item always gets the same ID)
    - Falls back to the item link when the feed carries no guid

It also provides the collection hash used to decide whether an in-memory
search index still matches the documents it was built from.

Usage:
    from swift_patterns.common.id_utils import make_document_id, collection_hash

    doc_id = make_document_id("sundell", item.guid, item.link)
    digest = collection_hash(patterns)
"""

import hashlib
from typing import Iterable, Optional, Protocol


class _Identified(Protocol):
    id: str


def make_document_id(source_id: str, guid: Optional[str], link: Optional[str]) -> str:
    """
    Build a stable document ID from a source and feed item.

    Args:
        source_id: Content source identifier (e.g. "sundell")
        guid: Feed item guid (preferred)
        link: Feed item link (fallback when guid is missing)

    Returns:
        Document ID string
    """
    return f"{source_id}-{guid or link or ''}"


def collection_hash(documents: Iterable[_Identified]) -> str:
    """
    Hash a document collection by size and sorted IDs.

    Two collections with the same IDs hash identically regardless of order.

    Args:
        documents: Documents with an ``id`` attribute

    Returns:
        Hex md5 digest
    """
    ids = sorted(doc.id for doc in documents)
    payload = f"{len(ids)}-{','.join(ids)}"
    return hashlib.md5(payload.encode("utf-8")).hexdigest()
