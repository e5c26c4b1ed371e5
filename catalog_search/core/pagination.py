"""Fixed-size pagination over ordered result sequences."""

import math
from typing import Sequence, TypeVar

from ..models.catalog import Page
from .exceptions import InvalidPageError

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 24


class Paginator:
    """Slices ordered results into fixed-size pages."""
    
    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE, strict: bool = False) -> None:
        """
        Initialize the paginator.
        
        Args:
            page_size: Items per page
            strict: Raise InvalidPageError for out-of-range pages instead of
                clamping to the nearest valid page
        """
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.page_size = page_size
        self.strict = strict
    
    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.page_size)
    
    def paginate(self, items: Sequence[T], page: int = 1) -> Page[T]:
        """
        Return one page of an ordered sequence.
        
        An empty sequence has a single valid page (page 1, no items).
        
        Args:
            items: Fully ordered results
            page: 1-indexed page number
            
        Returns:
            The requested (or clamped) page
        """
        total = len(items)
        total_pages = self.total_pages(total)
        last_page = max(total_pages, 1)
        
        if page < 1 or page > last_page:
            if self.strict:
                raise InvalidPageError(page, total_pages)
            page = min(max(page, 1), last_page)
        
        offset = (page - 1) * self.page_size
        return Page(
            items=list(items[offset:offset + self.page_size]),
            page=page,
            page_size=self.page_size,
            offset=offset,
            total=total,
            total_pages=total_pages,
            has_next=offset + self.page_size < total,
            has_previous=page > 1
        )
