"""'Did you mean' suggestions drawn from the candidate pool."""

from typing import List, Optional, Sequence

from ..models.catalog import Candidate
from .distance import levenshtein_distance
from .normalizer import TextNormalizer

SUGGESTION_MAX_DISTANCE = 3
SUGGESTION_MIN_QUERY_LENGTH = 3


class SuggestionGenerator:
    """Proposes corrected queries from nearby catalog names."""
    
    def __init__(self, max_suggestions: int = 3) -> None:
        self.max_suggestions = max_suggestions
        self.normalizer = TextNormalizer()
    
    def suggest(
        self,
        candidates: Sequence[Candidate],
        query: str,
        max_suggestions: Optional[int] = None
    ) -> List[str]:
        """
        Suggest corrections for a query.
        
        Args:
            candidates: Candidate pool
            query: The query (raw or normalized)
            max_suggestions: Maximum number of suggestions (instance default if None)
            
        Returns:
            Distinct normalized names within edit distance 3, closest first;
            ties keep the order in which names were first seen
        """
        if max_suggestions is None:
            max_suggestions = self.max_suggestions
        
        normalized_query = self.normalizer.normalize(query)
        if len(normalized_query) < SUGGESTION_MIN_QUERY_LENGTH or max_suggestions <= 0:
            return []
        
        unique_names = dict.fromkeys(c.normalized_name for c in candidates)
        
        scored = []
        for name in unique_names:
            distance = levenshtein_distance(normalized_query, name, SUGGESTION_MAX_DISTANCE)
            if distance <= SUGGESTION_MAX_DISTANCE:
                scored.append((distance, name))
        
        # sort() is stable, so equal distances keep encounter order
        scored.sort(key=lambda item: item[0])
        return [name for _, name in scored[:max_suggestions]]
