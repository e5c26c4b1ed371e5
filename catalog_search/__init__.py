"""
Catalog Search - product search with typo tolerance.

Turns raw, possibly misspelled, multi-word queries into ranked, paginated
catalog results, falling back to approximate matching and "did you mean"
suggestions when exact matching finds too little.
"""

__version__ = "1.0.0"

from .core.engine import SearchEngine
from .core.exceptions import FetchFailure, InvalidPageError
from .models.response import SearchResponse
from .models.catalog import ScoredResult, SearchFilters

__all__ = [
    "SearchEngine",
    "FetchFailure",
    "InvalidPageError",
    "SearchResponse",
    "ScoredResult",
    "SearchFilters",
]
