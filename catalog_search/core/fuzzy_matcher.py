"""Approximate (typo-tolerant) matching over candidate names."""

from typing import List, NamedTuple, Optional, Sequence

from rapidfuzz import fuzz

from ..models.catalog import Candidate
from .normalizer import TextNormalizer


class FuzzyMatch(NamedTuple):
    """A candidate and its approximate-match score (0.0 is a perfect match)."""
    
    candidate: Candidate
    score: float


class FuzzyMatcher:
    """Scores candidates against a query with a bounded tolerance.
    
    A candidate's score is the mismatch of the best alignment of the query
    inside its normalized name, plus a proximity penalty for how far into
    the name that alignment starts. Anything scoring above ``threshold`` is
    excluded. With the defaults, an alignment starting 40 or more characters
    in can never qualify.
    """
    
    def __init__(
        self,
        threshold: float = 0.4,
        distance: int = 100,
        min_query_length: int = 2
    ) -> None:
        """
        Initialize the fuzzy matcher.
        
        Args:
            threshold: Maximum accepted score (0 = exact only, 1 = anything)
            distance: Alignment offset at which the proximity penalty reaches 1.0
            min_query_length: Queries shorter than this skip fuzzy matching
        """
        self.threshold = threshold
        self.distance = distance
        self.min_query_length = min_query_length
        self.normalizer = TextNormalizer()
    
    def match(
        self,
        candidates: Sequence[Candidate],
        query: str,
        max_results: int = 50
    ) -> List[FuzzyMatch]:
        """
        Find the candidates that approximately match a query.
        
        Args:
            candidates: Candidate pool
            query: The query (raw or normalized)
            max_results: Maximum number of matches to return
            
        Returns:
            Up to ``max_results`` matches, best score first. Ties keep the
            candidate order. Queries below ``min_query_length`` fall through
            with the unscored candidates in their original order.
        """
        if max_results <= 0:
            return []
        
        normalized_query = self.normalizer.normalize(query)
        if len(normalized_query) < self.min_query_length:
            return [FuzzyMatch(c, 1.0) for c in candidates[:max_results]]
        
        matches = []
        for candidate in candidates:
            score = self.score(normalized_query, candidate.normalized_name)
            if score is not None:
                matches.append(FuzzyMatch(candidate, score))
        
        matches.sort(key=lambda m: m.score)
        return matches[:max_results]
    
    def score(self, query: str, name: str) -> Optional[float]:
        """
        Score a normalized query against a normalized name.
        
        Args:
            query: Normalized query
            name: Normalized candidate name
            
        Returns:
            Score in [0, threshold], or None when the name is out of tolerance
        """
        if not query or not name:
            return None
        
        position = name.find(query)
        if position >= 0:
            mismatch = 0.0
        else:
            alignment = fuzz.partial_ratio_alignment(
                query, name, score_cutoff=(1.0 - self.threshold) * 100
            )
            if alignment is None:
                return None
            mismatch = 1.0 - alignment.score / 100
            position = alignment.dest_start
            if len(name) < len(query):
                # Query characters left outside a shorter name count as errors
                mismatch += (len(query) - len(name)) / len(query)
        
        score = mismatch + self._proximity(position)
        if score > self.threshold:
            return None
        return round(score, 6)
    
    def _proximity(self, position: int) -> float:
        if not self.distance:
            return 0.0 if position == 0 else 1.0
        return position / self.distance
