"""Candidate fetchers: catalog stores the search pipeline reads from."""

from .base import CandidateFetcher, CategorySource
from .memory import InMemoryCatalog
from .postgres import PostgresCatalog
from .retry import RetryingFetcher

__all__ = [
    "CandidateFetcher",
    "CategorySource",
    "InMemoryCatalog",
    "PostgresCatalog",
    "RetryingFetcher",
]
