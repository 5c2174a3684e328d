"""
Exceptions surfaced to callers of the search engine.

Upstream fetch, cache and semantic recall failures are handled internally
and never reach this level.
"""


class QueryError(ValueError):
    """Missing, blank or oversized query. A usage error, never retried."""


class UnknownSourceError(LookupError):
    """Requested content source does not exist."""

    def __init__(self, source_id: str):
        super().__init__(f"Unknown source: {source_id!r}")
        self.source_id = source_id


class SourceNotConfiguredError(RuntimeError):
    """Source requires authentication that has not been set up."""

    def __init__(self, source_id: str):
        super().__init__(f"Source {source_id!r} requires setup before it can be enabled")
        self.source_id = source_id
