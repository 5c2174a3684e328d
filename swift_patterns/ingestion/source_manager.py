"""
Content source definitions and enable/disable state.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from .rss_fetcher import load_source_configs, save_source_configs
from swift_patterns.common.errors import SourceNotConfiguredError, UnknownSourceError
from swift_patterns.config.search_config import (
    RELEVANCE_CONFIG,
    SOURCE_DEFINITIONS,
    SOURCES_CONFIG,
)

logger = logging.getLogger(__name__)


@dataclass
class SourceConfig:
    """Everything that differs between two content sources."""
    source_id: str
    name: str
    feed_url: Optional[str] = None
    description: str = ""
    source_type: str = "free"
    topic_keywords: Dict[str, List[str]] = field(default_factory=dict)
    quality_signals: Dict[str, int] = field(default_factory=dict)
    baseline: int = RELEVANCE_CONFIG['baseline']
    code_bonus: int = RELEVANCE_CONFIG['code_bonus']
    fetch_full_article: bool = False
    extract_content_fn: Optional[Callable[[str], str]] = None
    requires_auth: bool = False
    auth_env: Optional[str] = None
    enabled_by_default: bool = True
    feed_ttl: Optional[float] = None      # None -> tier default
    article_ttl: Optional[float] = None

    @classmethod
    def from_definition(cls, source_id: str, definition: Mapping) -> "SourceConfig":
        """
        Build a config from a SOURCE_DEFINITIONS / sources.json entry.

        Args:
            source_id: Source identifier
            definition: Definition mapping

        Returns:
            SourceConfig
        """
        return cls(
            source_id=source_id,
            name=definition.get('name', source_id),
            feed_url=definition.get('feed_url'),
            description=definition.get('description', ''),
            source_type=definition.get('type', 'free'),
            topic_keywords=dict(definition.get('topic_keywords', {})),
            quality_signals=dict(definition.get('quality_signals', {})),
            baseline=definition.get('baseline', RELEVANCE_CONFIG['baseline']),
            code_bonus=definition.get('code_bonus', RELEVANCE_CONFIG['code_bonus']),
            fetch_full_article=definition.get('fetch_full_article', False),
            extract_content_fn=definition.get('extract_content_fn'),
            requires_auth=definition.get('requires_auth', False),
            auth_env=definition.get('auth_env'),
            enabled_by_default=definition.get('enabled_by_default', True),
            feed_ttl=definition.get('feed_ttl'),
            article_ttl=definition.get('article_ttl'),
        )


class SourceManager:
    """
    Configuration provider for content sources.

    Tracks which sources exist, which are enabled and whether sources that
    need credentials have them. State lives in memory only.
    """

    def __init__(
        self,
        sources: Iterable[SourceConfig],
        enabled: Optional[Iterable[str]] = None,
        environ: Optional[Mapping[str, str]] = None
    ):
        """
        Initialize source manager.

        Args:
            sources: Known source configurations (definition order is kept)
            enabled: Source IDs enabled at start (defaults per source)
            environ: Environment used for auth checks (os.environ by default)
        """
        self._sources: Dict[str, SourceConfig] = {s.source_id: s for s in sources}
        self._environ = environ if environ is not None else os.environ

        if enabled is None:
            enabled = [
                s.source_id for s in self._sources.values()
                if s.enabled_by_default and self.is_source_configured(s.source_id)
            ]

        self._enabled = set()
        for source_id in enabled:
            if source_id not in self._sources:
                logger.warning(f"Ignoring unknown source in enabled list: {source_id}")
                continue
            self._enabled.add(source_id)

    @classmethod
    def from_config(
        cls,
        config_path: str = SOURCES_CONFIG,
        enabled: Optional[Iterable[str]] = None
    ) -> "SourceManager":
        """
        Build from SOURCE_DEFINITIONS, overridden by an optional JSON file.

        ENABLED_SOURCES (comma-separated) overrides the default enabled set.
        """
        definitions = {k: dict(v) for k, v in SOURCE_DEFINITIONS.items()}
        for source_id, override in load_source_configs(config_path).items():
            definitions.setdefault(source_id, {}).update(override)

        if enabled is None and os.getenv("ENABLED_SOURCES"):
            enabled = [s.strip() for s in os.environ["ENABLED_SOURCES"].split(",") if s.strip()]

        sources = [
            SourceConfig.from_definition(source_id, definition)
            for source_id, definition in definitions.items()
        ]
        logger.info(f"Loaded {len(sources)} source definitions")
        return cls(sources, enabled=enabled)

    def get_source(self, source_id: str) -> Optional[SourceConfig]:
        return self._sources.get(source_id)

    def require_source(self, source_id: str) -> SourceConfig:
        source = self._sources.get(source_id)
        if source is None:
            raise UnknownSourceError(source_id)
        return source

    def get_all_sources(self) -> List[SourceConfig]:
        return list(self._sources.values())

    def is_source_configured(self, source_id: str) -> bool:
        """Sources without auth are always configured."""
        source = self.require_source(source_id)
        if not source.requires_auth:
            return True
        return bool(source.auth_env and self._environ.get(source.auth_env))

    def is_enabled(self, source_id: str) -> bool:
        return source_id in self._enabled

    def enable_source(self, source_id: str) -> SourceConfig:
        """
        Enable a source.

        Raises:
            UnknownSourceError: Source does not exist
            SourceNotConfiguredError: Source requires auth that is missing
        """
        source = self.require_source(source_id)
        if source.requires_auth and not self.is_source_configured(source_id):
            raise SourceNotConfiguredError(source_id)

        self._enabled.add(source_id)
        logger.info(f"Enabled source {source_id}")
        return source

    def disable_source(self, source_id: str) -> SourceConfig:
        source = self.require_source(source_id)
        self._enabled.discard(source_id)
        logger.info(f"Disabled source {source_id}")
        return source

    def enabled_sources(self) -> List[SourceConfig]:
        """Enabled sources in definition order."""
        return [s for s in self._sources.values() if s.source_id in self._enabled]

    def searchable_sources(self) -> List[SourceConfig]:
        """Enabled sources that have a feed to fetch."""
        return [
            s for s in self.enabled_sources()
            if s.feed_url and self.is_source_configured(s.source_id)
        ]

    def save_enabled_state(self, config_path: str = SOURCES_CONFIG) -> None:
        """
        Persist enabled flags into the sources JSON file.

        Other overrides already in the file are kept.
        """
        overrides = load_source_configs(config_path)
        for source_id in self._sources:
            overrides.setdefault(source_id, {})['enabled_by_default'] = self.is_enabled(source_id)
        save_source_configs(config_path, overrides)
