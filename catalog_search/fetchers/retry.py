"""Retrying wrapper for candidate fetchers."""

from typing import List, Optional

import structlog
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..core.exceptions import FetchFailure
from ..models.catalog import CatalogQuery, CatalogRecord, CategoryInfo
from .base import CandidateFetcher, CategorySource

logger = structlog.get_logger(__name__)


class RetryingFetcher:
    """Retries a fetcher's failures with exponential backoff.
    
    Applied where fetchers are composed, never inside the search pipeline.
    When every attempt fails the last ``FetchFailure`` is raised.
    """
    
    def __init__(
        self,
        fetcher: CandidateFetcher,
        max_attempts: int = 3,
        backoff: float = 1.0,
        max_wait: float = 8.0
    ) -> None:
        """
        Initialize the wrapper.
        
        Args:
            fetcher: The fetcher to wrap
            max_attempts: Total number of attempts
            backoff: Base delay in seconds (1s, 2s, 4s, ...)
            max_wait: Upper bound of a single delay in seconds
        """
        self.fetcher = fetcher
        self.max_attempts = max(1, max_attempts)
        self.backoff = backoff
        self.max_wait = max_wait
    
    def fetch(self, query: CatalogQuery) -> List[CatalogRecord]:
        return self._call(lambda: self.fetcher.fetch(query))
    
    def list_categories(self) -> List[CategoryInfo]:
        if not isinstance(self.fetcher, CategorySource):
            return []
        return self._call(self.fetcher.list_categories)
    
    def _call(self, func):
        retryer = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff, max=self.max_wait),
            retry=retry_if_exception_type(FetchFailure),
            before_sleep=self._log_retry,
            reraise=True,
        )
        return retryer(func)
    
    def _log_retry(self, retry_state) -> None:
        exc: Optional[BaseException] = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "catalog.fetch_retry",
            attempt=retry_state.attempt_number,
            max_attempts=self.max_attempts,
            error=str(exc) if exc else None
        )
