"""
Tokenizer with Porter stemming for lexical search.

Index-time and query-time text both go through tokenize() so that query
terms line up with indexed terms.
"""

import re
from functools import lru_cache
from typing import List

from nltk.stem.porter import PorterStemmer

# Common stopwords to filter out
STOPWORDS = frozenset({
    'a', 'an', 'the', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for',
    'of', 'with', 'by', 'from', 'as', 'is', 'was', 'are', 'were', 'been',
    'be', 'have', 'has', 'had', 'do', 'does', 'did', 'will', 'would', 'could',
    'should', 'may', 'might', 'must', 'shall', 'can', 'this', 'that', 'these',
    'those', 'it', 'its', 'they', 'them', 'their', 'we', 'our', 'you', 'your',
    'i', 'my', 'me', 'he', 'she', 'him', 'her', 'his', 'who', 'what', 'which',
    'when', 'where', 'why', 'how', 'all', 'each', 'every', 'both', 'few',
    'more', 'most', 'other', 'some', 'such', 'no', 'not', 'only', 'same',
    'so', 'than', 'too', 'very', 'just', 'also', 'now', 'here', 'there',
})

# Swift-specific terms that are never stemmed
PRESERVE_TERMS = frozenset({
    'swift', 'swiftui', 'uikit', 'combine', 'async', 'await', 'actor',
    'struct', 'class', 'enum', 'protocol', 'extension', 'func', 'var', 'let',
    'mvvm', 'viper', 'mvc', 'tca', 'xctest', 'xcode', 'ios', 'macos',
    'watchos', 'tvos', 'ipados', 'appkit', 'foundation', 'coredata',
    'cloudkit', 'urlsession', 'codable', 'observable', 'published',
    'stateobject', 'observedobject', 'environmentobject', 'binding', 'state',
})

# Hyphens survive so terms like "async-await" stay one token; non-ASCII letters split
NON_WORD_PATTERN = re.compile(r'[^\w\s-]', re.ASCII)

_stemmer = PorterStemmer(mode=PorterStemmer.ORIGINAL_ALGORITHM)


@lru_cache(maxsize=50000)
def stem_term(token: str) -> str:
    """Stem a single lower-case token unless it is a preserved term."""
    if token in PRESERVE_TERMS:
        return token
    return _stemmer.stem(token)


def tokenize(text: str) -> List[str]:
    """
    Turn free text into normalized search tokens.

    Args:
        text: Raw text (title, content, topics or a query)

    Returns:
        Tokens in input order, lower-cased, stopword-free and stemmed
    """
    if not text:
        return []

    cleaned = NON_WORD_PATTERN.sub(' ', text.lower())

    return [
        stem_term(token)
        for token in cleaned.split()
        if len(token) > 1 and token not in STOPWORDS
    ]


def is_preserved(term: str) -> bool:
    return term in PRESERVE_TERMS
