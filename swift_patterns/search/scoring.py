"""
Static relevance scoring and score fusion.

Static relevance is a keyword-presence heuristic computed once per document
when it is built from a feed item. At query time it is fused with the lexical
match score from SearchIndex.
"""

import math
import re
from typing import Dict, List

from swift_patterns.config.search_config import RELEVANCE_CONFIG, SEARCH_CONFIG

# Swift declarations
DECLARATION_PATTERN = re.compile(r'\b(func|class|struct|protocol|extension|enum|actor)\s+\w+')

# Swift keywords that indicate code
CODE_INDICATORS = [
    re.compile(r'\blet\s+\w+\s*[=:]'),              # let x = or let x:
    re.compile(r'\bvar\s+\w+\s*[=:]'),              # var x = or var x:
    re.compile(r'\breturn\s+\w+'),
    re.compile(r'\bguard\s+let'),
    re.compile(r'\bif\s+let'),
    re.compile(r'\basync\s+(func|let|var|throws)'),
    re.compile(r'\bawait\s+\w+'),
    re.compile(r'\b\w+\s*\(\s*\)\s*->\s*\w+'),      # function signatures
    re.compile(r'@\w+\s+(struct|class|func|var)'),  # property wrappers
]


def _clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class RelevanceScorer:
    """
    Deterministic keyword-presence quality heuristic.

    score = baseline + sum(points for each keyword present) + code bonus,
    clamped to [0, 100]. Keywords count once regardless of how often they
    occur, so repetition does not inflate the score.
    """

    def __init__(
        self,
        quality_signals: Dict[str, int],
        baseline: int = RELEVANCE_CONFIG['baseline'],
        code_bonus: int = RELEVANCE_CONFIG['code_bonus']
    ):
        """
        Initialize relevance scorer.

        Args:
            quality_signals: Keyword (lower-case) -> points
            baseline: Starting score (0 for unknown sources)
            code_bonus: Points added when the content has code
        """
        self.quality_signals = dict(quality_signals)
        self.baseline = baseline
        self.code_bonus = code_bonus

    def score(self, text: str, has_code: bool) -> int:
        """
        Score text.

        Args:
            text: Title and content
            has_code: Whether the content contains code examples

        Returns:
            Integer score in [0, 100]
        """
        text = (text or '').lower()
        score = self.baseline

        for keyword, points in self.quality_signals.items():
            if keyword in text:
                score += points

        if has_code:
            score += self.code_bonus

        return int(_clamp(score))


def detect_topics(text: str, topic_keywords: Dict[str, List[str]]) -> List[str]:
    """
    Detect topics whose keywords appear in the text.

    Args:
        text: Title and content
        topic_keywords: Topic -> keywords

    Returns:
        Detected topics in table order
    """
    text = (text or '').lower()
    return [
        topic for topic, keywords in topic_keywords.items()
        if any(keyword in text for keyword in keywords)
    ]


def has_code_content(content: str) -> bool:
    """Whether content contains code: HTML code tags, fences or Swift syntax."""
    if not content:
        return False

    if '<code>' in content or '<pre>' in content:
        return True

    if '```' in content:
        return True

    if DECLARATION_PATTERN.search(content):
        return True

    return any(pattern.search(content) for pattern in CODE_INDICATORS)


def normalize_search_score(
    search_score: float,
    normalizer: float = SEARCH_CONFIG['score_normalizer']
) -> float:
    """Map a raw lexical score onto [0, 100]."""
    return _clamp(search_score / normalizer, 0, 1) * 100


def combine_scores(
    search_score: float,
    static_relevance: float,
    search_weight: float = SEARCH_CONFIG['search_weight']
) -> int:
    """
    Combine lexical match score with static relevance.

    Lexical quality and content quality are independent signals; averaging
    them avoids ranking purely by keyword density or purely by source quality.

    Args:
        search_score: Raw score from SearchIndex (unbounded)
        static_relevance: Precomputed relevance score (0-100)
        search_weight: Weight for the lexical score (0-1)

    Returns:
        Combined integer score in [0, 100]
    """
    search_weight = _clamp(search_weight, 0, 1)
    normalized_search = normalize_search_score(search_score)

    combined = (
        normalized_search * search_weight
        + _clamp(static_relevance) * (1 - search_weight)
    )
    return int(_clamp(_round_half_up(combined)))
