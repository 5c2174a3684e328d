"""
In-memory inverted index with fuzzy, prefix and field-boosted matching.

Scoring is BM25+ computed per field:

score(t,D,f) = IDF(t,f) * (d + (tf * (k1 + 1)) / (tf + k1 * (1 - b + b * |D_f| / avgdl_f)))

Each query term is expanded to the indexed terms it matches:

- exact match            weight 1
- prefix match           weight prefix_weight * |q| / (|q| + 0.3 * extra chars)
- fuzzy (Levenshtein)    weight fuzzy_weight * |q| / (|q| + distance)

A document's score is the sum of its per-term contributions multiplied by the
number of distinct query terms it matched, so documents covering more of the
query rank higher.
"""

import bisect
import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from .tokenizer import tokenize, is_preserved
from swift_patterns.config.search_config import SEARCH_CONFIG, BM25_CONFIG

logger = logging.getLogger(__name__)

DEFAULT_FIELDS = ('title', 'content', 'topics')


@dataclass
class SearchResult:
    """A matched document with its raw lexical score."""
    document: Any
    score: float
    matched_terms: List[str] = field(default_factory=list)


@dataclass
class _IndexSnapshot:
    """Immutable-after-build index contents. Swapped in as a whole."""
    documents: List[Any]
    postings: Dict[str, Dict[str, Dict[int, int]]]   # field -> term -> {doc_pos: tf}
    field_lengths: Dict[str, List[int]]
    avg_lengths: Dict[str, float]
    vocabulary: List[str]                            # sorted, for prefix lookup
    vocabulary_set: frozenset


def _empty_snapshot(fields: Sequence[str]) -> _IndexSnapshot:
    return _IndexSnapshot(
        documents=[],
        postings={f: {} for f in fields},
        field_lengths={f: [] for f in fields},
        avg_lengths={f: 0.0 for f in fields},
        vocabulary=[],
        vocabulary_set=frozenset(),
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _field_text(document: Any, field_name: str) -> str:
    """Read a field from a dataclass-like or mapping document as flat text."""
    if isinstance(document, Mapping):
        value = document.get(field_name, '')
    else:
        value = getattr(document, field_name, '')

    if value is None:
        return ''
    # Multi-valued fields (topics) are indexed as one token string
    if isinstance(value, (list, tuple, set, frozenset)):
        return ' '.join(sorted(value) if isinstance(value, (set, frozenset)) else value)
    return str(value)


def _document_id(document: Any) -> str:
    if isinstance(document, Mapping):
        return str(document['id'])
    return str(document.id)


class SearchIndex:
    """
    Lexical search index over a replaceable document collection.

    add_documents() builds a complete new snapshot and swaps it in with a
    single assignment, so concurrent readers see either the old or the new
    contents, never a partial index.
    """

    def __init__(
        self,
        fields: Sequence[str] = DEFAULT_FIELDS,
        boost: Optional[Dict[str, float]] = None,
        bm25_params: Optional[Dict[str, float]] = None
    ):
        """
        Initialize search index.

        Args:
            fields: Document fields to index
            boost: Default per-field boost weights
            bm25_params: Overrides for k1, b, d, prefix_weight, fuzzy_weight
        """
        self.fields = tuple(fields)
        self.default_boost = dict(boost or SEARCH_CONFIG['default_boost'])

        params = dict(BM25_CONFIG)
        params.update(bm25_params or {})
        self.k1 = params['k1']
        self.b = params['b']
        self.d = params['d']
        self.prefix_weight = params['prefix_weight']
        self.fuzzy_weight = params['fuzzy_weight']

        self._snapshot = _empty_snapshot(self.fields)
        self._write_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._snapshot.documents)

    @property
    def vocabulary(self) -> List[str]:
        """All indexed terms in sorted order."""
        return list(self._snapshot.vocabulary)

    def add_documents(self, documents: Iterable[Any]) -> None:
        """
        Replace the entire index contents with the given documents.

        Duplicate IDs keep their first occurrence.

        Args:
            documents: Documents exposing id plus the indexed fields
        """
        snapshot = self._build_snapshot(documents)

        with self._write_lock:
            self._snapshot = snapshot

        logger.debug(
            f"Indexed {len(snapshot.documents)} documents, "
            f"{len(snapshot.vocabulary)} unique terms"
        )

    def clear(self) -> None:
        with self._write_lock:
            self._snapshot = _empty_snapshot(self.fields)

    def _build_snapshot(self, documents: Iterable[Any]) -> _IndexSnapshot:
        kept: List[Any] = []
        seen_ids = set()
        postings: Dict[str, Dict[str, Dict[int, int]]] = {f: {} for f in self.fields}
        field_lengths: Dict[str, List[int]] = {f: [] for f in self.fields}
        vocabulary = set()

        for document in documents:
            doc_id = _document_id(document)
            if doc_id in seen_ids:
                logger.warning(f"Duplicate document ID skipped: {doc_id}")
                continue
            seen_ids.add(doc_id)

            position = len(kept)
            kept.append(document)

            for field_name in self.fields:
                tokens = tokenize(_field_text(document, field_name))
                field_lengths[field_name].append(len(tokens))

                field_postings = postings[field_name]
                for token in tokens:
                    term_postings = field_postings.setdefault(token, {})
                    term_postings[position] = term_postings.get(position, 0) + 1
                    vocabulary.add(token)

        avg_lengths = {
            f: (sum(lengths) / len(lengths) if lengths else 0.0)
            for f, lengths in field_lengths.items()
        }

        return _IndexSnapshot(
            documents=kept,
            postings=postings,
            field_lengths=field_lengths,
            avg_lengths=avg_lengths,
            vocabulary=sorted(vocabulary),
            vocabulary_set=frozenset(vocabulary),
        )

    def search(
        self,
        query: str,
        fuzzy: float = SEARCH_CONFIG['fuzzy'],
        prefix: bool = SEARCH_CONFIG['prefix'],
        boost: Optional[Dict[str, float]] = None,
        min_score: float = SEARCH_CONFIG['min_score']
    ) -> List[SearchResult]:
        """
        Search the index.

        Args:
            query: Free-text query (tokenized like indexed text)
            fuzzy: Max edit distance as a fraction of term length (0 disables)
            prefix: Whether query terms also match longer indexed terms
            boost: Per-field boost weights (defaults to the index boost)
            min_score: Drop results scoring below this

        Returns:
            Results ordered by score descending, ties in insertion order
        """
        query_terms = list(dict.fromkeys(tokenize(query)))
        if not query_terms:
            return []

        # Single read of the snapshot reference keeps this search consistent
        snapshot = self._snapshot
        if not snapshot.documents:
            return []

        boost = boost if boost is not None else self.default_boost
        total_docs = len(snapshot.documents)

        scores: Dict[int, float] = {}
        matched: Dict[int, List[str]] = {}

        for query_term in query_terms:
            expansions = self._expand_term(query_term, snapshot, fuzzy, prefix)
            if not expansions:
                continue

            term_scores: Dict[int, float] = {}

            for field_name in self.fields:
                field_boost = boost.get(field_name, 1.0)
                if field_boost <= 0:
                    continue

                field_postings = snapshot.postings[field_name]
                lengths = snapshot.field_lengths[field_name]
                avg_length = snapshot.avg_lengths[field_name] or 1.0

                # Best expansion per document within this field
                best_in_field: Dict[int, float] = {}
                for index_term, weight in expansions.items():
                    term_postings = field_postings.get(index_term)
                    if not term_postings:
                        continue

                    idf = self._idf(total_docs, len(term_postings))
                    for position, tf in term_postings.items():
                        value = weight * idf * self._tf_component(
                            tf, lengths[position], avg_length
                        )
                        if value > best_in_field.get(position, 0.0):
                            best_in_field[position] = value

                for position, value in best_in_field.items():
                    term_scores[position] = term_scores.get(position, 0.0) + value * field_boost

            for position, value in term_scores.items():
                scores[position] = scores.get(position, 0.0) + value
                matched.setdefault(position, []).append(query_term)

        results = []
        for position, raw_score in scores.items():
            score = raw_score * len(matched[position])
            if score < min_score:
                continue
            results.append((position, SearchResult(
                document=snapshot.documents[position],
                score=score,
                matched_terms=matched[position],
            )))

        results.sort(key=lambda item: (-item[1].score, item[0]))
        return [result for _, result in results]

    def _expand_term(
        self,
        query_term: str,
        snapshot: _IndexSnapshot,
        fuzzy: float,
        prefix: bool
    ) -> Dict[str, float]:
        """
        Map a query term to matching indexed terms and their match weights.

        Preserved technical terms only ever match themselves.
        """
        expansions: Dict[str, float] = {}

        if query_term in snapshot.vocabulary_set:
            expansions[query_term] = 1.0

        if is_preserved(query_term):
            return expansions

        term_length = len(query_term)

        if prefix:
            start = bisect.bisect_left(snapshot.vocabulary, query_term)
            for candidate in snapshot.vocabulary[start:]:
                if not candidate.startswith(query_term):
                    break
                if candidate == query_term:
                    continue
                extra = len(candidate) - term_length
                weight = self.prefix_weight * term_length / (term_length + 0.3 * extra)
                if weight > expansions.get(candidate, 0.0):
                    expansions[candidate] = weight

        max_distance = self._max_distance(query_term, fuzzy)
        if max_distance > 0 and snapshot.vocabulary:
            for candidate, distance, _ in process.extract(
                query_term,
                snapshot.vocabulary,
                scorer=Levenshtein.distance,
                score_cutoff=max_distance,
                limit=None,
            ):
                if distance == 0:
                    continue
                weight = self.fuzzy_weight * term_length / (term_length + distance)
                if weight > expansions.get(candidate, 0.0):
                    expansions[candidate] = weight

        return expansions

    @staticmethod
    def _max_distance(query_term: str, fuzzy: float) -> int:
        if not fuzzy or fuzzy <= 0:
            return 0
        if fuzzy >= 1:
            return int(fuzzy)
        return min(SEARCH_CONFIG['max_fuzzy'], _round_half_up(len(query_term) * fuzzy))

    @staticmethod
    def _idf(total_docs: int, matching_docs: int) -> float:
        return math.log(1 + (total_docs - matching_docs + 0.5) / (matching_docs + 0.5))

    def _tf_component(self, tf: int, field_length: int, avg_length: float) -> float:
        denominator = tf + self.k1 * (1 - self.b + self.b * field_length / avg_length)
        return self.d + (tf * (self.k1 + 1)) / denominator


def fuzzy_search(documents: Iterable[Any], query: str, **options) -> List[SearchResult]:
    """
    Convenience function for one-off searches over a document list.

    Args:
        documents: Documents to index
        query: Search query
        **options: Keyword options forwarded to SearchIndex.search

    Returns:
        Search results
    """
    index = SearchIndex()
    index.add_documents(documents)
    return index.search(query, **options)


def suggest_similar(
    query: str,
    known_terms: Iterable[str],
    max_suggestions: int = 3
) -> List[str]:
    """
    Suggest known terms close to a query ("did you mean?").

    Args:
        query: User query
        known_terms: Candidate terms
        max_suggestions: Maximum suggestions to return

    Returns:
        Terms within edit distance 1-3, nearest first
    """
    query_lower = query.lower()

    candidates = []
    for position, term in enumerate(dict.fromkeys(known_terms)):
        distance = Levenshtein.distance(query_lower, term.lower())
        if 0 < distance <= 3:
            candidates.append((distance, position, term))

    candidates.sort()
    return [term for _, _, term in candidates[:max_suggestions]]
