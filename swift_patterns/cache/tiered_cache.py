"""
Three-tier TTL cache.

Tiers:
    feed     source id   -> transformed Document list   (short TTL)
    article  article URL -> extracted article text      (long TTL)
    intent   intent key  -> final ranked result set     (short/medium TTL)

Expiry is evaluated when an entry is read. A read at or after expires_at is a
miss, there is no background sweep. Store failures are logged and treated as
misses so a broken cache can never fail a query.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from swift_patterns.config.search_config import CACHE_CONFIG

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cached value with its absolute expiry time."""
    key: str
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class MemoryStore:
    """Dictionary-backed entry store."""

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}

    def read(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def write(self, entry: CacheEntry) -> None:
        self._entries[entry.key] = entry

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def remove_prefix(self, prefix: str) -> None:
        for key in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[key]

    def count_prefix(self, prefix: str) -> int:
        return sum(1 for k in self._entries if k.startswith(prefix))


class TTLCache:
    """
    Namespaced TTL cache over an entry store.

    Several namespaces may share one store; keys are stored as
    "{namespace}:{key}" so namespaces never collide.
    """

    def __init__(
        self,
        namespace: str,
        default_ttl: float,
        store: Optional[MemoryStore] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize TTL cache.

        Args:
            namespace: Key namespace for this tier
            default_ttl: TTL in seconds used when set() gets none
            store: Entry store (a private MemoryStore when omitted)
            clock: Monotonic time source in seconds
        """
        self.namespace = namespace
        self.default_ttl = default_ttl
        self.store = store if store is not None else MemoryStore()
        self.clock = clock

        self.hits = 0
        self.misses = 0

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        """
        Get a cached value.

        Args:
            key: Cache key

        Returns:
            Cached value, or None on miss or expiry
        """
        full_key = self._key(key)

        try:
            entry = self.store.read(full_key)
        except Exception as e:
            logger.warning(f"Cache read failed for {full_key}: {e}")
            self.misses += 1
            return None

        if entry is None:
            self.misses += 1
            return None

        if entry.is_expired(self.clock()):
            self.misses += 1
            try:
                self.store.remove(full_key)
            except Exception as e:
                logger.warning(f"Cache cleanup failed for {full_key}: {e}")
            return None

        self.hits += 1
        return entry.value

    async def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """
        Store a value.

        Args:
            key: Cache key
            value: Value to cache
            ttl_seconds: Time to live (defaults to the tier TTL)
        """
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        full_key = self._key(key)

        try:
            self.store.write(CacheEntry(
                key=full_key,
                value=value,
                expires_at=self.clock() + ttl,
            ))
        except Exception as e:
            logger.warning(f"Cache write failed for {full_key}: {e}")

    async def delete(self, key: str) -> None:
        try:
            self.store.remove(self._key(key))
        except Exception as e:
            logger.warning(f"Cache delete failed for {self._key(key)}: {e}")

    async def clear(self) -> None:
        try:
            self.store.remove_prefix(f"{self.namespace}:")
        except Exception as e:
            logger.warning(f"Cache clear failed for namespace {self.namespace}: {e}")

    def size(self) -> int:
        """Stored entries in this namespace, expired ones included until read."""
        try:
            return self.store.count_prefix(f"{self.namespace}:")
        except Exception as e:
            logger.warning(f"Cache size unavailable for namespace {self.namespace}: {e}")
            return 0

    def stats(self) -> Dict[str, Any]:
        return {
            'namespace': self.namespace,
            'ttl_seconds': self.default_ttl,
            'entries': self.size(),
            'hits': self.hits,
            'misses': self.misses,
        }


class TieredCache:
    """Feed, article and intent caches with independent TTL policies."""

    def __init__(
        self,
        feed_ttl: float = CACHE_CONFIG['feed_ttl_seconds'],
        article_ttl: float = CACHE_CONFIG['article_ttl_seconds'],
        intent_ttl: float = CACHE_CONFIG['intent_ttl_seconds'],
        store: Optional[MemoryStore] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        store = store if store is not None else MemoryStore()

        self.feeds = TTLCache('feed', feed_ttl, store=store, clock=clock)
        self.articles = TTLCache('article', article_ttl, store=store, clock=clock)
        self.intents = TTLCache('intent', intent_ttl, store=store, clock=clock)

    async def clear(self) -> None:
        await self.feeds.clear()
        await self.articles.clear()
        await self.intents.clear()

    def stats(self) -> Dict[str, Dict[str, Any]]:
        return {
            'feed': self.feeds.stats(),
            'article': self.articles.stats(),
            'intent': self.intents.stats(),
        }
