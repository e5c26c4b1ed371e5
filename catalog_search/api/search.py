"""Search API endpoints."""

import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Path
from starlette.concurrency import run_in_threadpool

from ..config import get_settings
from ..core.engine import SearchEngine
from ..dependencies import get_engine, get_fetcher, get_metrics
from ..fetchers.base import CandidateFetcher
from ..models.catalog import SearchFilters, SortOrder
from ..models.request import SearchRequest
from ..models.response import SearchResponse
from .metrics import SearchMetrics

router = APIRouter(prefix="/api/v1", tags=["search"])
settings = get_settings()


def _check_query_length(query: str) -> None:
    if len(query) > settings.max_query_length:
        raise HTTPException(
            status_code=400,
            detail=f"Query too long. Maximum length is {settings.max_query_length} characters"
        )


async def _run_search(
    engine: SearchEngine,
    fetcher: CandidateFetcher,
    metrics: SearchMetrics,
    request: SearchRequest
) -> SearchResponse:
    _check_query_length(request.query)
    
    start_time = time.time()
    try:
        response = await run_in_threadpool(
            engine.search,
            request.query,
            fetcher,
            filters=request.to_filters(),
            page=request.page,
            include_suggestions=request.include_suggestions,
            sequence=request.seq
        )
    except Exception:
        metrics.record_error((time.time() - start_time) * 1000)
        raise
    
    metrics.record(response)
    return response


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Search the catalog",
    description="Search products by name with typo tolerance, filters and pagination"
)
async def search_products(
    q: str = Query("", description="Search query; empty lists the catalog"),
    page: int = Query(1, description="1-indexed page number"),
    category: Optional[str] = Query(None, description="Category name"),
    subcategory: Optional[str] = Query(None, description="Subcategory name"),
    price_min: Optional[float] = Query(None, ge=0.0, description="Minimum price per unit"),
    price_max: Optional[float] = Query(None, ge=0.0, description="Maximum price per unit"),
    order: SortOrder = Query(SortOrder.NAME_ASC, description="Catalog ordering for empty queries"),
    include_suggestions: bool = Query(True, description="Include 'did you mean' suggestions"),
    seq: Optional[int] = Query(None, ge=0, description="Caller sequence number, echoed back"),
    engine: SearchEngine = Depends(get_engine),
    fetcher: CandidateFetcher = Depends(get_fetcher),
    metrics: SearchMetrics = Depends(get_metrics)
) -> SearchResponse:
    """
    Search the catalog.
    
    Interactive clients firing one request per keystroke should send an
    increasing ``seq`` and ignore responses whose ``sequence`` is not the
    latest they issued.
    """
    try:
        request = SearchRequest(
            query=q,
            page=page,
            category=category,
            subcategory=subcategory,
            price_min=price_min,
            price_max=price_max,
            order=order,
            include_suggestions=include_suggestions,
            seq=seq
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    
    return await _run_search(engine, fetcher, metrics, request)


@router.post(
    "/search",
    response_model=SearchResponse,
    summary="Search with request body",
    description="Search the catalog using a structured request body"
)
async def search_with_body(
    request: SearchRequest,
    engine: SearchEngine = Depends(get_engine),
    fetcher: CandidateFetcher = Depends(get_fetcher),
    metrics: SearchMetrics = Depends(get_metrics)
) -> SearchResponse:
    """Search the catalog using a JSON request body."""
    return await _run_search(engine, fetcher, metrics, request)


@router.get(
    "/suggestions/{query}",
    response_model=list[str],
    summary="Get search suggestions",
    description="Get 'did you mean' suggestions for a possibly misspelled query"
)
async def get_suggestions(
    query: str = Path(..., description="The query to get suggestions for", min_length=1),
    max_suggestions: int = Query(3, ge=1, le=10, description="Maximum number of suggestions"),
    category: Optional[str] = Query(None, description="Category name"),
    engine: SearchEngine = Depends(get_engine),
    fetcher: CandidateFetcher = Depends(get_fetcher)
) -> list[str]:
    """
    Get suggestions for a query.
    
    Useful for "did you mean" prompts when a search comes back empty.
    """
    _check_query_length(query)
    
    return await run_in_threadpool(
        engine.suggest,
        query,
        fetcher,
        filters=SearchFilters(category=category),
        max_suggestions=max_suggestions
    )
