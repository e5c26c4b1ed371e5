"""Request-scoped access to the engine, fetcher and metrics.

Everything lives on ``app.state`` and is set up in the application lifespan,
so tests can swap the fetcher without touching module globals.
"""

from typing import TYPE_CHECKING

from fastapi import Request

from .core.engine import SearchEngine
from .fetchers.base import CandidateFetcher

if TYPE_CHECKING:
    from .api.metrics import SearchMetrics


def get_engine(request: Request) -> SearchEngine:
    """Get the configured search engine."""
    return request.app.state.engine


def get_fetcher(request: Request) -> CandidateFetcher:
    """Get the catalog fetcher for this application."""
    return request.app.state.fetcher


def get_metrics(request: Request) -> "SearchMetrics":
    """Get the query metrics collector."""
    return request.app.state.metrics
