"""
Text normalization for feed titles, snippets and excerpts.

Article content is left untouched: code detection relies on the raw
<code>/<pre> markup and fenced blocks.
"""

import html
import logging
import re

logger = logging.getLogger(__name__)

# Common RSS artifacts appended to summaries
RSS_ARTIFACTS = (
    'Continue reading',
    'Read more',
    'Read the full article',
    'The post appeared first on',
)


class TextNormalizer:
    """Normalizes feed text for display and indexing."""

    def __init__(self):
        self.tag_pattern = re.compile(r'<[^>]+>')
        self.script_pattern = re.compile(
            r'<(script|style)[^>]*>.*?</\1>', flags=re.DOTALL | re.IGNORECASE
        )
        self.comment_pattern = re.compile(r'<!--.*?-->', flags=re.DOTALL)
        self.multiple_spaces = re.compile(r'\s+')

    def strip_html(self, text: str) -> str:
        """Decode entities and drop tags, scripts and comments."""
        if not text:
            return ""

        text = self.script_pattern.sub('', text)
        text = self.comment_pattern.sub('', text)
        text = self.tag_pattern.sub(' ', text)
        return html.unescape(text)

    def normalize_title(self, title: str) -> str:
        """
        Normalize article title.

        Args:
            title: Raw title

        Returns:
            Single-line title without markup
        """
        if not title:
            return ""

        title = self.strip_html(title)
        return self.multiple_spaces.sub(' ', title).strip()

    def clean_summary(self, summary: str) -> str:
        """
        Clean RSS feed summary text into a plain-text snippet.

        Args:
            summary: Raw summary from RSS

        Returns:
            Cleaned summary
        """
        if not summary:
            return ""

        summary = self.strip_html(summary)

        for artifact in RSS_ARTIFACTS:
            summary = summary.replace(artifact, '')

        return self.multiple_spaces.sub(' ', summary).strip()

    def extract_excerpt(self, text: str, max_length: int = 300) -> str:
        """
        Cut text down to a display excerpt.

        Args:
            text: Plain text
            max_length: Maximum length of excerpt

        Returns:
            At most max_length characters
        """
        if not text:
            return ""

        text = self.multiple_spaces.sub(' ', text).strip()
        return text[:max_length]
