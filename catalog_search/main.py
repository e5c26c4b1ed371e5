"""Main FastAPI application for the catalog search service."""

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import structlog

from .api import (
    search_router,
    catalog_router,
    health_router,
    metrics_router,
)
from .api.metrics import SearchMetrics
from .config import Settings, get_settings
from .core.engine import SearchEngine
from .core.exceptions import FetchFailure, InvalidPageError
from .fetchers import InMemoryCatalog, PostgresCatalog, RetryingFetcher
from .fetchers.base import CandidateFetcher
from .models.response import ErrorResponse

DEFAULT_CATALOG_FILE = os.path.join(os.path.dirname(__file__), "sample_catalog.json")


def configure_logging(settings: Settings) -> None:
    """Configure structured logging."""
    logging.basicConfig(format="%(message)s", level=settings.log_level.upper())
    
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


settings = get_settings()
configure_logging(settings)
logger = structlog.get_logger()


def build_fetcher(settings: Settings) -> CandidateFetcher:
    """Create the catalog fetcher selected in the settings."""
    if settings.catalog_backend == "postgres":
        store = PostgresCatalog(settings.db_config, use_unaccent=settings.db_use_unaccent)
    elif settings.catalog_backend == "memory":
        store = InMemoryCatalog.from_json_file(settings.catalog_file or DEFAULT_CATALOG_FILE)
    else:
        raise ValueError(f"Unknown catalog backend: {settings.catalog_backend}")
    
    return RetryingFetcher(
        store,
        max_attempts=settings.fetch_max_retries,
        backoff=settings.fetch_retry_backoff
    )


def create_app(fetcher: Optional[CandidateFetcher] = None) -> FastAPI:
    """
    Create the FastAPI application.
    
    Args:
        fetcher: Catalog fetcher to serve; built from the settings at
            startup when None
            
    Returns:
        The configured application
    """
    
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        logger.info("Starting Catalog Search service", version=settings.app_version)
        
        try:
            app.state.fetcher = fetcher if fetcher is not None else build_fetcher(settings)
        except Exception as e:
            logger.error("Failed to initialize catalog", backend=settings.catalog_backend, error=str(e))
            raise
        
        app.state.engine = SearchEngine.from_settings(settings)
        app.state.metrics = SearchMetrics()
        logger.info("Catalog ready", backend=settings.catalog_backend)
        
        yield
        
        logger.info("Shutting down Catalog Search service")
    
    app = FastAPI(
        title=settings.app_name,
        description="Product catalog search with typo tolerance and suggestions",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )
    
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    
    @app.middleware("http")
    async def log_requests(request: Request, call_next) -> Response:
        """Log all HTTP requests."""
        start_time = time.time()
        
        logger.info(
            "Request started",
            method=request.method,
            url=str(request.url),
            client_ip=request.client.host if request.client else None
        )
        
        response = await call_next(request)
        
        process_time = time.time() - start_time
        logger.info(
            "Request completed",
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
            process_time_ms=round(process_time * 1000, 2)
        )
        
        return response
    
    @app.exception_handler(FetchFailure)
    async def fetch_failure_handler(request: Request, exc: FetchFailure) -> JSONResponse:
        """The catalog store failed; no partial results are served."""
        logger.error("Catalog fetch failed", url=str(request.url), error=str(exc))
        
        return JSONResponse(
            status_code=502,
            content=ErrorResponse(
                error="Catalog Unavailable",
                message="The product catalog could not be read",
                details={"exception": str(exc)} if settings.debug else None
            ).model_dump(mode="json")
        )
    
    @app.exception_handler(InvalidPageError)
    async def invalid_page_handler(request: Request, exc: InvalidPageError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error="Invalid Page",
                message=str(exc),
                details={"page": exc.page, "total_pages": exc.total_pages}
            ).model_dump(mode="json")
        )
    
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle global exceptions."""
        logger.error(
            "Unhandled exception",
            method=request.method,
            url=str(request.url),
            error=str(exc),
            exc_info=True
        )
        
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="Internal Server Error",
                message="An unexpected error occurred",
                details={"exception": str(exc)} if settings.debug else None
            ).model_dump(mode="json")
        )
    
    app.include_router(search_router)
    app.include_router(catalog_router)
    app.include_router(health_router)
    app.include_router(metrics_router)
    
    @app.get("/", summary="Root endpoint", description="Get basic information about the API")
    async def root() -> dict:
        """Root endpoint with basic API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "description": "Product catalog search with typo tolerance and suggestions",
            "docs_url": "/docs",
            "health_url": "/api/v1/health",
            "status": "running"
        }
    
    @app.get("/api", summary="API information", description="Get detailed API information")
    async def api_info() -> dict:
        """Get detailed API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "endpoints": {
                "search": "/api/v1/search?q=...",
                "suggestions": "/api/v1/suggestions/{query}",
                "categories": "/api/v1/categories",
                "health": "/api/v1/health",
                "metrics": "/api/v1/metrics"
            },
            "features": [
                "Accent and case insensitive matching",
                "Multi-word (AND) queries",
                "Typo detection with fuzzy fallback",
                "'Did you mean' suggestions",
                "Relevance ranking",
                "Category and price filters",
                "Fixed-size pagination"
            ],
            "search": {
                "page_size": settings.page_size,
                "max_query_length": settings.max_query_length,
                "fuzzy_max_results": settings.fuzzy_max_results
            }
        }
    
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    
    uvicorn.run(
        "catalog_search.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=1 if settings.debug else settings.workers,
        log_level=settings.log_level.lower()
    )
