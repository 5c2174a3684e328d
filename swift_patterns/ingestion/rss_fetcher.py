"""
RSS feed fetcher producing FeedItem records.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import aiohttp
import feedparser

from .text_normalizer import TextNormalizer
from swift_patterns.common.models import FeedItem
from swift_patterns.config.search_config import RSS_CONFIG

logger = logging.getLogger(__name__)


class RSSFetcher:
    """Fetches and parses RSS/Atom feeds. Failures yield None, never raise."""

    def __init__(
        self,
        timeout_seconds: float = RSS_CONFIG['timeout_seconds'],
        user_agent: str = RSS_CONFIG['user_agent']
    ):
        """
        Initialize RSS fetcher.

        Args:
            timeout_seconds: Total timeout per feed request
            user_agent: User-Agent header sent to publishers
        """
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent
        self.normalizer = TextNormalizer()

    async def fetch_feed_items(self, feed_url: str) -> Optional[List[FeedItem]]:
        """
        Fetch a feed and convert its entries.

        No retries: a failed fetch is reported once and the caller decides
        what an empty contribution means.

        Args:
            feed_url: URL of the RSS feed

        Returns:
            Feed items, or None if the feed could not be fetched or parsed
        """
        logger.info(f"Fetching feed {feed_url}")

        feed = await self._fetch_feed(feed_url)
        if feed is None:
            return None

        items = [self._to_feed_item(entry) for entry in feed.entries]
        logger.info(f"Parsed {len(items)} entries from {feed_url}")
        return items

    async def _fetch_feed(self, url: str) -> Optional[feedparser.FeedParserDict]:
        """
        Fetch and parse RSS feed using async aiohttp.

        Uses aiohttp for fast async HTTP, then feedparser for parsing.

        Args:
            url: Feed URL to fetch

        Returns:
            Parsed feed or None on error
        """
        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                headers = {'User-Agent': self.user_agent}

                async with session.get(url, headers=headers) as response:
                    if response.status != 200:
                        logger.warning(f"HTTP {response.status} for {url}")
                        return None

                    content = await response.read()

            # Parse with feedparser (no I/O)
            feed = feedparser.parse(content)

            if getattr(feed, 'bozo', False) and feed.get('bozo_exception'):
                logger.warning(f"Feed parse warning for {url}: {feed.bozo_exception}")
                # Still usable if there are entries
                if not feed.entries:
                    return None

            return feed

        except asyncio.TimeoutError:
            logger.warning(f"Timeout fetching {url}")
            return None
        except aiohttp.ClientError as e:
            logger.warning(f"HTTP error fetching {url}: {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected error fetching {url}: {e}")
            return None

    def _to_feed_item(self, entry: Dict) -> FeedItem:
        """
        Convert a feedparser entry.

        Args:
            entry: Feedparser entry

        Returns:
            FeedItem with full content when the feed carries it
        """
        content = ''
        content_blocks = entry.get('content') or []
        if content_blocks:
            content = content_blocks[0].get('value', '') or ''

        summary = entry.get('summary', entry.get('description', '')) or ''

        return FeedItem(
            id=entry.get('id', entry.get('guid', '')) or '',
            title=self.normalizer.normalize_title(entry.get('title', '')),
            link=entry.get('link', '') or '',
            publish_date=entry.get('published', entry.get('updated', '')) or '',
            content_snippet=self.normalizer.clean_summary(summary),
            content=content or None,
        )


def load_source_configs(config_path: str) -> Dict[str, Dict]:
    """
    Load content source definitions from a JSON file.

    Expected format: {"sources": [{"id": "...", "feed_url": "...", ...}]}

    Args:
        config_path: Path to sources.json

    Returns:
        Dictionary mapping source IDs to their definitions
    """
    config_file = Path(config_path)
    if not config_file.exists():
        logger.debug(f"Sources config not found: {config_path}")
        return {}

    with open(config_file, 'r') as f:
        config = json.load(f)

    source_configs = {}
    for source in config.get("sources", []):
        source_id = source["id"]
        source_configs[source_id] = {k: v for k, v in source.items() if k != "id"}

    return source_configs


def save_source_configs(config_path: str, source_configs: Dict[str, Dict]) -> None:
    """
    Write content source definitions in the format load_source_configs reads.

    Args:
        config_path: Path to sources.json
        source_configs: Dictionary mapping source IDs to their definitions
    """
    config_file = Path(config_path)
    config_file.parent.mkdir(parents=True, exist_ok=True)

    sources = [{"id": source_id, **definition} for source_id, definition in source_configs.items()]
    with open(config_file, 'w') as f:
        json.dump({"sources": sources}, f, indent=2)

    logger.info(f"Saved {len(sources)} source definitions to {config_path}")
