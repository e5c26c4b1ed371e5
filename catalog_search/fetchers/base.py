"""Candidate fetcher contract: the pipeline's only I/O boundary."""

from typing import List, Protocol, runtime_checkable

from ..models.catalog import CatalogQuery, CatalogRecord, CategoryInfo


@runtime_checkable
class CandidateFetcher(Protocol):
    """A catalog store that answers coarse candidate requests.
    
    Implementations receive the query's first normalized token as
    ``name_filter`` (or None for an unfiltered listing) together with the
    caller's category, price and ordering bounds, and return at most
    ``limit`` records. Store errors must be raised as ``FetchFailure``.
    """
    
    def fetch(self, query: CatalogQuery) -> List[CatalogRecord]:
        ...


@runtime_checkable
class CategorySource(Protocol):
    """A store that can also list its categories."""
    
    def list_categories(self) -> List[CategoryInfo]:
        ...
