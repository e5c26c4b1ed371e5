"""Response models for API endpoints."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .catalog import CategoryInfo, ScoredResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SearchResponse(BaseModel):
    """Response for catalog searches."""
    
    query: str = Field(..., description="Original search query")
    normalized_query: str = Field(..., description="Normalized search query")
    tokens: List[str] = Field(..., description="Query tokens")
    results: List[ScoredResult] = Field(..., description="Results on this page")
    page: int = Field(..., description="Page number served (after clamping)")
    page_size: int = Field(..., description="Results per page")
    total_results: int = Field(..., description="Total number of results across pages")
    total_pages: int = Field(..., description="Total number of pages")
    has_next: bool = Field(..., description="Whether a further page exists")
    has_previous: bool = Field(..., description="Whether a previous page exists")
    typo_detected: bool = Field(default=False, description="Whether the query looks misspelled")
    fuzzy_applied: bool = Field(default=False, description="Whether approximate matching was used")
    suggestions: Optional[List[str]] = Field(None, description="'Did you mean' suggestions")
    sequence: Optional[int] = Field(None, description="Caller sequence number, if supplied")
    execution_time_ms: float = Field(..., description="Query execution time in milliseconds")
    timestamp: datetime = Field(default_factory=_utcnow, description="Response timestamp")


class CategoriesResponse(BaseModel):
    """Catalog categories."""
    
    categories: List[CategoryInfo] = Field(..., description="Categories with subcategories")
    total: int = Field(..., description="Number of categories")


class ErrorResponse(BaseModel):
    """Error response model."""
    
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")


class HealthResponse(BaseModel):
    """Health check response."""
    
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Application version")
    uptime: float = Field(..., description="Service uptime in seconds")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check timestamp")
    dependencies: Dict[str, str] = Field(..., description="Dependency status")


class MetricsResponse(BaseModel):
    """Performance metrics response."""
    
    total_queries: int = Field(..., description="Total queries processed")
    average_response_time_ms: float = Field(..., description="Average response time")
    fuzzy_fallback_rate: float = Field(..., description="Share of queries that used fuzzy matching")
    no_result_rate: float = Field(..., description="Share of queries with no results")
    error_rate: float = Field(..., description="Share of queries that failed")
    memory_usage_mb: float = Field(..., description="Process memory usage in MB")
    timestamp: datetime = Field(default_factory=_utcnow, description="Metrics timestamp")
