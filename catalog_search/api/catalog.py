"""Catalog browsing API endpoints."""

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from ..dependencies import get_fetcher
from ..fetchers.base import CandidateFetcher, CategorySource
from ..models.response import CategoriesResponse

router = APIRouter(prefix="/api/v1", tags=["catalog"])


@router.get(
    "/categories",
    response_model=CategoriesResponse,
    summary="List categories",
    description="List catalog categories with their subcategories, for search filters"
)
async def list_categories(
    fetcher: CandidateFetcher = Depends(get_fetcher)
) -> CategoriesResponse:
    """List catalog categories; stores without category support return none."""
    if not isinstance(fetcher, CategorySource):
        return CategoriesResponse(categories=[], total=0)
    
    categories = await run_in_threadpool(fetcher.list_categories)
    return CategoriesResponse(categories=categories, total=len(categories))
