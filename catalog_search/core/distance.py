"""Edit distance between normalized strings."""

from typing import Optional

from rapidfuzz.distance import Levenshtein


def levenshtein_distance(
    source: str,
    target: str,
    max_distance: Optional[int] = None
) -> int:
    """
    Compute the Levenshtein distance between two strings.
    
    Counts the minimum number of single-character insertions, deletions or
    substitutions needed to turn ``source`` into ``target``.
    
    Args:
        source: First string
        target: Second string
        max_distance: Optional bound; distances above it are reported as
            ``max_distance + 1`` so callers can stop early
            
    Returns:
        Non-negative edit distance
    """
    return Levenshtein.distance(source, target, score_cutoff=max_distance)


def within_distance(source: str, target: str, max_distance: int) -> bool:
    """Check whether two strings are at most ``max_distance`` edits apart."""
    return levenshtein_distance(source, target, max_distance) <= max_distance
