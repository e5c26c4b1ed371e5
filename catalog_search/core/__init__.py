"""Core search pipeline functionality."""

from .distance import levenshtein_distance, within_distance
from .engine import SearchEngine
from .exceptions import CatalogSearchError, FetchFailure, InvalidPageError
from .filters import conjunctive_filter
from .fuzzy_matcher import FuzzyMatch, FuzzyMatcher
from .normalizer import TextNormalizer, normalize_text
from .pagination import Paginator
from .ranking import RelevanceRanker
from .suggestions import SuggestionGenerator
from .typo import TypoDetector

__all__ = [
    "SearchEngine",
    "CatalogSearchError",
    "FetchFailure",
    "InvalidPageError",
    "FuzzyMatch",
    "FuzzyMatcher",
    "TextNormalizer",
    "normalize_text",
    "Paginator",
    "RelevanceRanker",
    "SuggestionGenerator",
    "TypoDetector",
    "conjunctive_filter",
    "levenshtein_distance",
    "within_distance",
]
