"""
FastAPI route handlers for the pattern search API.
"""

import logging
import time
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request

from .models import (
    SearchRequest,
    SearchResponse,
    SourcesResponse,
    SourceToggleResponse,
    HealthResponse,
    ErrorResponse
)
from swift_patterns.common.errors import QueryError, SourceNotConfiguredError, UnknownSourceError
from swift_patterns.search.search_engine import PatternSearchEngine, SearchOutcome

logger = logging.getLogger('api')

# Track service start time
service_start_time = datetime.now()


# ============================================================================
# Dependency Injection
# ============================================================================

def get_search_engine(request: Request) -> PatternSearchEngine:
    """Get the engine created during application startup."""
    engine = getattr(request.app.state, 'search_engine', None)
    if engine is None:
        raise _error(503, "Search engine not initialized", "ENGINE_UNAVAILABLE")
    return engine


class APIError(Exception):
    """Raised by route handlers; rendered as an ErrorResponse body."""

    def __init__(self, status_code: int, body: ErrorResponse):
        super().__init__(body.error)
        self.status_code = status_code
        self.body = body


def _error(status_code: int, message: str, code: str, **details) -> APIError:
    return APIError(
        status_code,
        ErrorResponse(error=message, code=code, details=details or None)
    )


def _search_response(outcome: SearchOutcome, limit: int, started: float) -> dict:
    response = outcome.to_dict()
    response['results'] = response['results'][:limit]
    response['query_time_ms'] = int((time.perf_counter() - started) * 1000)
    return response


# ============================================================================
# API Router
# ============================================================================

router = APIRouter(prefix="/api/v1", tags=["patterns"])

error_responses = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


# ============================================================================
# Search Endpoints
# ============================================================================

@router.post("/search", response_model=SearchResponse, responses=error_responses)
async def search_content(
    request: SearchRequest,
    engine: PatternSearchEngine = Depends(get_search_engine)
):
    """
    Search all enabled sources.

    Lexical search with fuzzy and prefix matching, optionally supplemented
    by semantic recall when lexical results are weak.
    """
    started = time.perf_counter()
    logger.info(
        f"Search request: query='{request.query}', "
        f"require_code={request.require_code}, limit={request.limit}"
    )

    try:
        outcome = await engine.search_content(request.query, require_code=request.require_code)
    except QueryError as e:
        raise _error(400, str(e), "INVALID_QUERY")

    response = _search_response(outcome, request.limit, started)
    logger.info(
        f"Search completed: {response['total']} total results, "
        f"{len(response['results'])} returned, {response['query_time_ms']}ms"
    )
    return response


@router.get("/patterns", response_model=SearchResponse, responses=error_responses)
async def get_patterns(
    topic: str = Query(..., description="Topic to search for (e.g. 'swiftui', 'testing')"),
    source: str = Query("all", description="Source ID or 'all'"),
    min_quality: int = Query(60, ge=0, le=100, description="Minimum relevance score"),
    limit: int = Query(10, ge=1, le=100, description="Maximum results to return"),
    engine: PatternSearchEngine = Depends(get_search_engine)
):
    """Get high-quality patterns on a topic."""
    started = time.perf_counter()

    try:
        outcome = await engine.get_patterns(topic, source=source, min_quality=min_quality)
    except QueryError as e:
        raise _error(400, str(e), "INVALID_QUERY")
    except UnknownSourceError as e:
        raise _error(404, str(e), "UNKNOWN_SOURCE", source=e.source_id)

    return _search_response(outcome, limit, started)


# ============================================================================
# Source Endpoints
# ============================================================================

@router.get("/sources", response_model=SourcesResponse, responses={503: error_responses[503]})
async def get_sources(
    engine: PatternSearchEngine = Depends(get_search_engine)
):
    """List all content sources with their enabled and configured state."""
    sources = engine.list_sources()
    return {
        "sources": sources,
        "total": len(sources)
    }


@router.post("/sources/{source_id}/enable", response_model=SourceToggleResponse, responses=error_responses)
async def enable_source(
    source_id: str,
    engine: PatternSearchEngine = Depends(get_search_engine)
):
    """Enable a source. Premium sources need their credentials configured first."""
    try:
        return engine.enable_source(source_id)
    except UnknownSourceError as e:
        raise _error(404, str(e), "UNKNOWN_SOURCE", source=e.source_id)
    except SourceNotConfiguredError as e:
        raise _error(409, str(e), "SOURCE_NOT_CONFIGURED", source=e.source_id)


@router.post("/sources/{source_id}/disable", response_model=SourceToggleResponse, responses=error_responses)
async def disable_source(
    source_id: str,
    engine: PatternSearchEngine = Depends(get_search_engine)
):
    """Disable a source."""
    try:
        return engine.disable_source(source_id)
    except UnknownSourceError as e:
        raise _error(404, str(e), "UNKNOWN_SOURCE", source=e.source_id)


# ============================================================================
# Health Check Endpoint
# ============================================================================

@router.get("/health", response_model=HealthResponse, responses={503: error_responses[503]})
async def health_check(
    engine: PatternSearchEngine = Depends(get_search_engine)
):
    """
    Health check endpoint.

    Returns service status and cache metrics.
    """
    uptime = (datetime.now() - service_start_time).total_seconds()
    stats = engine.get_stats()

    status = "healthy" if stats['sources']['enabled'] > 0 else "degraded"

    return {
        "status": status,
        "sources_enabled": stats['sources']['enabled'],
        "semantic_recall_enabled": stats['semantic_recall_enabled'],
        "cache": stats['cache'],
        "uptime_seconds": int(uptime)
    }
