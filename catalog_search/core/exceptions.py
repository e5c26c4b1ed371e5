"""Exception types raised by the search pipeline."""

from typing import Optional


class CatalogSearchError(Exception):
    """Base class for catalog search errors."""


class FetchFailure(CatalogSearchError):
    """The candidate store could not be read.

    Raised by fetchers and propagated unchanged through the pipeline. The
    original exception, when there is one, is chained as ``__cause__``.
    """

    def __init__(self, message: str, backend: Optional[str] = None) -> None:
        super().__init__(message)
        self.backend = backend


class InvalidPageError(CatalogSearchError):
    """A page outside ``[1, total_pages]`` was requested in strict mode."""

    def __init__(self, page: int, total_pages: int) -> None:
        super().__init__(
            f"Page {page} is out of range (valid pages: 1..{max(total_pages, 1)})"
        )
        self.page = page
        self.total_pages = total_pages
