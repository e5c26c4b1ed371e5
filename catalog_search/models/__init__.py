"""Data models for the catalog search service."""

from .catalog import (
    Candidate,
    CatalogQuery,
    CatalogRecord,
    CategoryInfo,
    MatchKind,
    Page,
    Query,
    ScoredResult,
    SearchFilters,
    SortOrder,
)
from .request import SearchRequest
from .response import (
    SearchResponse,
    CategoriesResponse,
    ErrorResponse,
    HealthResponse,
    MetricsResponse,
)

__all__ = [
    "Candidate",
    "CatalogQuery",
    "CatalogRecord",
    "CategoryInfo",
    "MatchKind",
    "Page",
    "Query",
    "ScoredResult",
    "SearchFilters",
    "SortOrder",
    "SearchRequest",
    "SearchResponse",
    "CategoriesResponse",
    "ErrorResponse",
    "HealthResponse",
    "MetricsResponse",
]
