"""Typo detection: decides whether approximate matching is worth trying."""

from typing import Sequence

from ..models.catalog import Candidate
from .distance import within_distance
from .normalizer import TextNormalizer

TYPO_MIN_QUERY_LENGTH = 3
TYPO_MAX_DISTANCE = 2


class TypoDetector:
    """Flags queries that look like a misspelling of a catalog name."""
    
    def __init__(
        self,
        min_query_length: int = TYPO_MIN_QUERY_LENGTH,
        max_distance: int = TYPO_MAX_DISTANCE
    ) -> None:
        self.min_query_length = min_query_length
        self.max_distance = max_distance
        self.normalizer = TextNormalizer()
    
    def is_likely_typo(self, candidates: Sequence[Candidate], query: str) -> bool:
        """
        Decide whether a query is probably misspelled.
        
        The whole normalized query is compared with each whole normalized
        name, so short queries rarely match long multi-word names.
        
        Args:
            candidates: Candidates as fetched, before conjunctive filtering
            query: The query (raw or normalized)
            
        Returns:
            False for short queries or when some name contains the query;
            otherwise True iff some name is within ``max_distance`` edits
        """
        normalized_query = self.normalizer.normalize(query)
        if len(normalized_query) < self.min_query_length:
            return False
        
        if any(normalized_query in c.normalized_name for c in candidates):
            return False
        
        return any(
            within_distance(normalized_query, c.normalized_name, self.max_distance)
            for c in candidates
        )
