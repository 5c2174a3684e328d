"""
Pydantic models for API requests and responses.
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


# ============================================================================
# Search Models
# ============================================================================

class SearchRequest(BaseModel):
    """Search request body."""

    # Length and blank checks happen in the engine so they map to 400
    query: str = Field(..., description="Search query")
    require_code: bool = Field(False, description="Only return patterns with code examples")
    limit: int = Field(10, ge=1, le=100, description="Maximum results to return")


class PatternResult(BaseModel):
    """Individual search result."""

    id: str = Field(..., description="Document ID (e.g., 'sundell-https://...')")
    title: str = Field(..., description="Article title")
    url: str = Field(..., description="Article URL")
    source_id: str = Field(..., description="Content source")
    publish_date: str = Field("", description="Publication date as given by the feed")
    excerpt: str = Field("", description="Article excerpt")
    topics: List[str] = Field(default_factory=list, description="Detected topics")
    relevance_score: int = Field(..., ge=0, le=100, description="Combined relevance score")
    has_code: bool = Field(False, description="Whether the article contains code")


class RecallInfo(BaseModel):
    """Semantic recall outcome."""

    status: str = Field(..., description="inactive, empty, found or degraded")
    added: int = Field(0, description="Documents added by semantic recall")
    error: Optional[str] = Field(None, description="Failure message when degraded")


class SearchResponse(BaseModel):
    """Search response."""

    results: List[PatternResult] = Field(..., description="Search results")
    total: int = Field(..., description="Total results found")
    query: str = Field(..., description="Original search query")
    sources: List[str] = Field(default_factory=list, description="Sources searched")
    semantic_recall: RecallInfo = Field(..., description="Semantic recall outcome")
    cached: bool = Field(False, description="Served from the intent cache")
    query_time_ms: int = Field(..., description="Query execution time in milliseconds")


# ============================================================================
# Source Models
# ============================================================================

class Source(BaseModel):
    """Content source information."""

    id: str = Field(..., description="Source ID")
    name: str = Field(..., description="Source name")
    type: str = Field(..., description="free or premium")
    description: str = Field("", description="Source description")
    enabled: bool = Field(..., description="Whether the source is searched")
    configured: bool = Field(..., description="Whether required credentials are present")
    requires_auth: bool = Field(False, description="Whether the source needs credentials")


class SourcesResponse(BaseModel):
    """Sources response."""

    sources: List[Source] = Field(..., description="List of sources")
    total: int = Field(..., description="Total sources")


class SourceToggleResponse(BaseModel):
    """Enable/disable response."""

    id: str = Field(..., description="Source ID")
    name: str = Field(..., description="Source name")
    enabled: bool = Field(..., description="New enabled state")


# ============================================================================
# Health Models
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    sources_enabled: int = Field(..., description="Enabled sources")
    semantic_recall_enabled: bool = Field(..., description="Whether semantic recall is on")
    cache: Dict[str, Dict[str, Any]] = Field(default_factory=dict, description="Cache statistics")
    uptime_seconds: Optional[int] = Field(None, description="Service uptime in seconds")


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Error response."""

    error: str = Field(..., description="Error message")
    code: str = Field(..., description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
