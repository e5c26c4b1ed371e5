"""Multi-tier relevance ranking of search results."""

from typing import Iterable, List, Mapping, Optional, Sequence, Union

from ..models.catalog import Candidate, MatchKind, ScoredResult

TIER_EXACT = 3
TIER_STARTS_WITH = 2
TIER_TOKEN_STARTS_WITH = 1
TIER_NONE = 0

_TIER_KINDS = {
    TIER_EXACT: MatchKind.EXACT,
    TIER_STARTS_WITH: MatchKind.STARTS_WITH,
    TIER_TOKEN_STARTS_WITH: MatchKind.TOKEN_STARTS_WITH,
    TIER_NONE: MatchKind.NONE,
}


class RelevanceRanker:
    """Orders results by match tier, then alphabetically by normalized name."""
    
    def tier(self, name: str, query: str, tokens: Sequence[str]) -> int:
        """
        Compute the relevance tier of a normalized name.
        
        Args:
            name: Normalized candidate name
            query: Normalized query
            tokens: Query tokens
            
        Returns:
            3 for an exact name, 2 when the name starts with the query,
            1 when a word of the name starts with a query token, else 0
        """
        if name == query:
            return TIER_EXACT
        if query and name.startswith(query):
            return TIER_STARTS_WITH
        words = name.split()
        if any(word.startswith(token) for word in words for token in tokens):
            return TIER_TOKEN_STARTS_WITH
        return TIER_NONE
    
    def rank(
        self,
        candidates: Iterable[Candidate],
        query: str,
        tokens: Sequence[str],
        fuzzy_scores: Optional[Mapping[Union[int, str], float]] = None
    ) -> List[ScoredResult]:
        """
        Score and sort candidates for a non-empty query.
        
        Args:
            candidates: Filtered or fuzzy-matched candidates
            query: Normalized query
            tokens: Query tokens
            fuzzy_scores: Approximate-match scores keyed by product id, for
                candidates that came from the fuzzy matcher
            
        Returns:
            Scored results, highest tier first, then by normalized name
        """
        fuzzy_scores = fuzzy_scores or {}
        
        results = []
        for candidate in candidates:
            tier = self.tier(candidate.normalized_name, query, tokens)
            fuzzy_score = fuzzy_scores.get(candidate.id)
            kind = _TIER_KINDS[tier]
            if tier == TIER_NONE and fuzzy_score is not None:
                kind = MatchKind.FUZZY
            results.append(ScoredResult(
                product=candidate.record,
                normalized_name=candidate.normalized_name,
                match_kind=kind,
                tier=tier,
                fuzzy_score=fuzzy_score
            ))
        
        # Normalized names carry no case or accents, so code point order
        # matches a collation that ignores them.
        results.sort(key=lambda r: (-r.tier, r.normalized_name))
        return results
    
    @staticmethod
    def unranked(candidates: Iterable[Candidate]) -> List[ScoredResult]:
        """Wrap candidates as results, keeping catalog order (empty query)."""
        return [
            ScoredResult(
                product=candidate.record,
                normalized_name=candidate.normalized_name,
                match_kind=MatchKind.NONE,
                tier=TIER_NONE
            )
            for candidate in candidates
        ]
