"""Main search pipeline implementation."""

import time
from typing import Dict, List, Optional, Sequence, Tuple, Union

import structlog

from ..config import Settings
from ..fetchers.base import CandidateFetcher
from ..models.catalog import Candidate, CatalogQuery, Query, ScoredResult, SearchFilters
from ..models.response import SearchResponse
from .exceptions import FetchFailure
from .filters import conjunctive_filter
from .fuzzy_matcher import FuzzyMatcher
from .pagination import Paginator
from .ranking import RelevanceRanker
from .suggestions import SuggestionGenerator
from .typo import TypoDetector

logger = structlog.get_logger(__name__)


class SearchEngine:
    """Turns a raw query into a ranked, paginated page of catalog products.
    
    The engine holds configuration only. The catalog is reached through the
    fetcher passed to each call, and nothing is remembered between queries.
    """
    
    def __init__(
        self,
        page_size: int = 24,
        candidate_limit: int = 1000,
        fuzzy_threshold: float = 0.4,
        fuzzy_distance: int = 100,
        fuzzy_min_query_length: int = 2,
        fuzzy_max_results: int = 50,
        fuzzy_fallback_min_results: int = 3,
        max_suggestions: int = 3,
        strict_pagination: bool = False
    ) -> None:
        """
        Initialize the search engine.
        
        Args:
            page_size: Results per page
            candidate_limit: Maximum records requested from the fetcher
            fuzzy_threshold: Tolerance of the approximate matcher
            fuzzy_distance: Maximum alignment distance of the approximate matcher
            fuzzy_min_query_length: Shortest query the approximate matcher scores
            fuzzy_max_results: Maximum approximate matches per query
            fuzzy_fallback_min_results: Exact hit count below which typo
                handling is attempted
            max_suggestions: Maximum 'did you mean' suggestions
            strict_pagination: Reject out-of-range pages instead of clamping
        """
        self.candidate_limit = candidate_limit
        self.fuzzy_max_results = fuzzy_max_results
        self.fuzzy_fallback_min_results = fuzzy_fallback_min_results
        self.typo_detector = TypoDetector()
        self.fuzzy_matcher = FuzzyMatcher(
            threshold=fuzzy_threshold,
            distance=fuzzy_distance,
            min_query_length=fuzzy_min_query_length
        )
        self.suggestion_generator = SuggestionGenerator(max_suggestions)
        self.ranker = RelevanceRanker()
        self.paginator = Paginator(page_size, strict=strict_pagination)
    
    @classmethod
    def from_settings(cls, settings: Settings) -> "SearchEngine":
        """Build an engine from application settings."""
        return cls(
            page_size=settings.page_size,
            candidate_limit=settings.candidate_limit,
            fuzzy_threshold=settings.fuzzy_threshold,
            fuzzy_distance=settings.fuzzy_distance,
            fuzzy_min_query_length=settings.fuzzy_min_query_length,
            fuzzy_max_results=settings.fuzzy_max_results,
            fuzzy_fallback_min_results=settings.fuzzy_fallback_min_results,
            max_suggestions=settings.max_suggestions,
            strict_pagination=settings.strict_pagination
        )
    
    def search(
        self,
        query: Optional[str],
        fetcher: CandidateFetcher,
        filters: Optional[SearchFilters] = None,
        page: int = 1,
        include_suggestions: bool = True,
        sequence: Optional[int] = None
    ) -> SearchResponse:
        """
        Search the catalog.
        
        Args:
            query: Raw user query; empty or blank lists the catalog
            fetcher: Candidate store for this call
            filters: Category, price and ordering bounds passed to the fetcher
            page: 1-indexed page number
            include_suggestions: Whether to compute suggestions on typos
            sequence: Caller sequence number echoed in the response
            
        Returns:
            SearchResponse with one page of results
            
        Raises:
            FetchFailure: The fetcher failed; no partial results are returned
            InvalidPageError: Out-of-range page with strict pagination
        """
        start_time = time.time()
        parsed = Query.parse(query)
        filters = filters or SearchFilters()
        
        typo_detected = False
        fuzzy_applied = False
        suggestions = None
        
        if parsed.is_empty:
            candidates = self._fetch(fetcher, None, filters)
            results = self.ranker.unranked(candidates)
        else:
            results, typo_detected, fuzzy_applied, suggestions = self._search_query(
                parsed, fetcher, filters, include_suggestions
            )
        
        result_page = self.paginator.paginate(results, page)
        execution_time = (time.time() - start_time) * 1000
        
        logger.info(
            "search.completed",
            query=parsed.normalized,
            total_results=result_page.total,
            page=result_page.page,
            typo_detected=typo_detected,
            fuzzy_applied=fuzzy_applied,
            execution_time_ms=round(execution_time, 2)
        )
        
        return SearchResponse(
            query=parsed.raw,
            normalized_query=parsed.normalized,
            tokens=list(parsed.tokens),
            results=result_page.items,
            page=result_page.page,
            page_size=result_page.page_size,
            total_results=result_page.total,
            total_pages=result_page.total_pages,
            has_next=result_page.has_next,
            has_previous=result_page.has_previous,
            typo_detected=typo_detected,
            fuzzy_applied=fuzzy_applied,
            suggestions=suggestions,
            sequence=sequence,
            execution_time_ms=execution_time
        )
    
    def suggest(
        self,
        query: str,
        fetcher: CandidateFetcher,
        filters: Optional[SearchFilters] = None,
        max_suggestions: Optional[int] = None
    ) -> List[str]:
        """
        Get 'did you mean' suggestions for a query.
        
        Suggestions come from the same pool the search fallback uses.
        
        Args:
            query: Raw user query
            fetcher: Candidate store for this call
            filters: Catalog bounds
            max_suggestions: Maximum number of suggestions
            
        Returns:
            List of normalized product names
        """
        parsed = Query.parse(query)
        if parsed.is_empty:
            return []
        
        filters = filters or SearchFilters()
        candidates = self._fetch(fetcher, parsed.first_token, filters)
        pool = self._fuzzy_pool(candidates, fetcher, filters)
        return self.suggestion_generator.suggest(pool, parsed.normalized, max_suggestions)
    
    def _search_query(
        self,
        parsed: Query,
        fetcher: CandidateFetcher,
        filters: SearchFilters,
        include_suggestions: bool
    ) -> Tuple[List[ScoredResult], bool, bool, Optional[List[str]]]:
        candidates = self._fetch(fetcher, parsed.first_token, filters)
        matched = conjunctive_filter(candidates, parsed.tokens)
        
        typo_detected = False
        fuzzy_applied = False
        suggestions = None
        fuzzy_scores: Dict[Union[int, str], float] = {}
        
        if len(matched) < self.fuzzy_fallback_min_results:
            pool = self._fuzzy_pool(candidates, fetcher, filters)
            typo_detected = self.typo_detector.is_likely_typo(pool, parsed.normalized)
            
            if typo_detected:
                fuzzy_matches = self.fuzzy_matcher.match(
                    pool, parsed.normalized, self.fuzzy_max_results
                )
                matched_ids = {c.id for c in matched}
                for candidate, score in fuzzy_matches:
                    if candidate.id not in matched_ids:
                        matched.append(candidate)
                        matched_ids.add(candidate.id)
                        fuzzy_scores[candidate.id] = score
                fuzzy_applied = bool(fuzzy_scores)
                
                if include_suggestions:
                    suggestions = self.suggestion_generator.suggest(pool, parsed.normalized)
                
                logger.info(
                    "search.fuzzy_fallback",
                    query=parsed.normalized,
                    exact_hits=len(matched) - len(fuzzy_scores),
                    fuzzy_hits=len(fuzzy_scores),
                    suggestions=suggestions
                )
        
        results = self.ranker.rank(matched, parsed.normalized, parsed.tokens, fuzzy_scores)
        return results, typo_detected, fuzzy_applied, suggestions
    
    def _fuzzy_pool(
        self,
        candidates: Sequence[Candidate],
        fetcher: CandidateFetcher,
        filters: SearchFilters
    ) -> Sequence[Candidate]:
        # A misspelled first token usually makes the coarse fetch come back
        # empty, so typo handling needs the unfiltered catalog instead.
        if candidates:
            return candidates
        return self._fetch(fetcher, None, filters)
    
    def _fetch(
        self,
        fetcher: CandidateFetcher,
        name_filter: Optional[str],
        filters: SearchFilters
    ) -> List[Candidate]:
        catalog_query = CatalogQuery.build(name_filter, filters, self.candidate_limit)
        try:
            records = fetcher.fetch(catalog_query)
        except FetchFailure:
            raise
        except Exception as e:
            raise FetchFailure(f"Candidate fetch failed: {e}") from e
        
        logger.debug("search.fetched", name_filter=name_filter, candidates=len(records))
        return [Candidate.from_record(record) for record in records]
