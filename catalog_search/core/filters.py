"""Conjunctive (AND) token filtering over fetched candidates."""

from typing import List, Sequence

from ..models.catalog import Candidate


def conjunctive_filter(
    candidates: Sequence[Candidate],
    tokens: Sequence[str]
) -> List[Candidate]:
    """
    Keep candidates whose normalized name contains every query token.
    
    Tokens are matched as substrings in any order; this is not a phrase
    match. A single-token query is returned unchanged because the coarse
    fetch has already filtered on that token.
    
    Args:
        candidates: Candidates from the coarse fetch
        tokens: Normalized query tokens (at least one)
        
    Returns:
        The surviving candidates, in input order
    """
    if len(tokens) <= 1:
        return list(candidates)
    
    return [
        candidate for candidate in candidates
        if all(token in candidate.normalized_name for token in tokens)
    ]
