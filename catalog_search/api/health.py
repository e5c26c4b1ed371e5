"""Health check and monitoring API endpoints."""

import time
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from ..config import get_settings
from ..core.engine import SearchEngine
from ..dependencies import get_engine, get_fetcher, get_metrics
from ..fetchers.base import CandidateFetcher
from ..fetchers.retry import RetryingFetcher
from ..models.catalog import CatalogQuery
from ..models.response import HealthResponse
from .metrics import SearchMetrics

router = APIRouter(prefix="/api/v1", tags=["health"])
settings = get_settings()
logger = structlog.get_logger(__name__)

# Track application start time
app_start_time = time.time()


async def _check_catalog(fetcher: CandidateFetcher) -> str:
    # Single attempt against the store itself, without retry backoff
    if isinstance(fetcher, RetryingFetcher):
        fetcher = fetcher.fetcher
    
    try:
        await run_in_threadpool(fetcher.fetch, CatalogQuery(limit=1))
    except Exception as e:
        logger.warning("health.catalog_unavailable", error=str(e))
        return "unhealthy"
    return "healthy"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health status of the search service and its catalog"
)
async def health_check(
    fetcher: CandidateFetcher = Depends(get_fetcher)
) -> HealthResponse:
    """
    Perform a health check on the search service.
    
    The catalog store is probed with a one-record listing.
    """
    dependencies = {
        "search_engine": "healthy",
        "catalog": await _check_catalog(fetcher),
    }
    
    if all(status == "healthy" for status in dependencies.values()):
        status = "healthy"
    else:
        status = "degraded"
    
    return HealthResponse(
        status=status,
        version=settings.app_version,
        uptime=time.time() - app_start_time,
        dependencies=dependencies
    )


@router.get(
    "/health/ready",
    summary="Readiness check",
    description="Check if the service is ready to accept requests"
)
async def readiness_check(
    fetcher: CandidateFetcher = Depends(get_fetcher)
) -> JSONResponse:
    """Ready when the catalog store answers."""
    catalog_status = await _check_catalog(fetcher)
    ready = catalog_status == "healthy"
    
    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "catalog": catalog_status,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


@router.get(
    "/health/live",
    summary="Liveness check",
    description="Check if the service is alive and responding"
)
async def liveness_check() -> JSONResponse:
    """Liveness probe: the process is up."""
    return JSONResponse(
        status_code=200,
        content={
            "status": "alive",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": time.time() - app_start_time
        }
    )


@router.get(
    "/status",
    summary="Service status",
    description="Get detailed status information about the service"
)
async def service_status(
    engine: SearchEngine = Depends(get_engine),
    metrics: SearchMetrics = Depends(get_metrics)
) -> JSONResponse:
    """Service, configuration and query statistics in one document."""
    config_info = {
        "page_size": engine.paginator.page_size,
        "candidate_limit": engine.candidate_limit,
        "fuzzy_threshold": engine.fuzzy_matcher.threshold,
        "fuzzy_distance": engine.fuzzy_matcher.distance,
        "fuzzy_max_results": engine.fuzzy_max_results,
        "fuzzy_fallback_min_results": engine.fuzzy_fallback_min_results,
        "strict_pagination": engine.paginator.strict,
        "catalog_backend": settings.catalog_backend,
        "debug": settings.debug
    }
    
    return JSONResponse(
        status_code=200,
        content={
            "service": {
                "name": settings.app_name,
                "version": settings.app_version,
                "status": "running",
                "uptime": time.time() - app_start_time,
                "start_time": datetime.fromtimestamp(app_start_time, timezone.utc).isoformat()
            },
            "configuration": config_info,
            "statistics": metrics.snapshot(),
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )
