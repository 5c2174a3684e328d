"""
Full-article extraction from web pages.
"""

import asyncio
import logging
from typing import Callable, Optional

import aiohttp
from trafilatura import extract
from trafilatura.settings import use_config

from swift_patterns.config.search_config import CONTENT_CONFIG

logger = logging.getLogger(__name__)


class ContentExtractor:
    """Fetches article pages and extracts their main text."""

    def __init__(
        self,
        fetch_timeout: float = CONTENT_CONFIG['fetch_timeout'],
        user_agent: str = CONTENT_CONFIG['user_agent']
    ):
        """
        Initialize content extractor.

        Args:
            fetch_timeout: Total timeout for the page request in seconds
            user_agent: User-Agent header sent to publishers
        """
        self.fetch_timeout = fetch_timeout
        self.user_agent = user_agent

        # Configure trafilatura for better extraction
        self.trafilatura_config = use_config()
        self.trafilatura_config.set("DEFAULT", "EXTRACTION_TIMEOUT", "0")

    async def fetch_article_text(
        self,
        url: str,
        extract_fn: Optional[Callable[[str], str]] = None
    ) -> Optional[str]:
        """
        Fetch a page and extract its article text.

        Args:
            url: URL of the article
            extract_fn: Source-specific extractor applied to the raw HTML
                instead of trafilatura

        Returns:
            Extracted text or None if fetching or extraction failed
        """
        html = await self.fetch_html(url)
        if html is None:
            return None

        try:
            text = extract_fn(html) if extract_fn else self.extract_text(html)
        except Exception as e:
            logger.error(f"Error extracting article text from {url}: {e}")
            return None

        if not text:
            logger.warning(f"No article text extracted from {url}")
            return None

        return text

    async def fetch_html(self, url: str) -> Optional[str]:
        """
        Download a page.

        Args:
            url: Page URL

        Returns:
            HTML body or None on error
        """
        try:
            timeout = aiohttp.ClientTimeout(total=self.fetch_timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                headers = {'User-Agent': self.user_agent}
                async with session.get(url, headers=headers) as response:
                    if response.status != 200:
                        logger.warning(f"HTTP {response.status} for {url}")
                        return None

                    return await response.text()

        except asyncio.TimeoutError:
            logger.error(f"Timeout fetching full text from {url}")
            return None
        except Exception as e:
            logger.error(f"Error fetching full text from {url}: {e}")
            return None

    def extract_text(self, html: str) -> Optional[str]:
        """Extract main text with trafilatura, keeping code blocks as text."""
        return extract(
            html,
            config=self.trafilatura_config,
            include_comments=False,
            include_tables=True,
            include_formatting=True,
        )
