"""
Fuzzy ranking of candidate directories.

Ranking is a pure function over a query and a set of candidate paths. A
candidate matches when the query is a case-insensitive subsequence of one of
its components or of its whole path; its distance is the smallest
Levenshtein distance among the representations that match.
"""

from typing import Dict, Iterable, List, Optional

from rapidfuzz.distance import Levenshtein

from ..models.rank import Rank, order_ranks
from .dir_cache import path_components


DEFAULT_THRESHOLD = 10


def is_subsequence(needle: str, haystack: str) -> bool:
    """Check whether every character of needle appears in haystack, in order."""
    remaining = iter(haystack)
    return all(char in remaining for char in needle)


def fuzzy_distance(query: str, target: str) -> Optional[int]:
    """
    Compute the case-insensitive fuzzy distance between a query and a string.

    Args:
        query: Text typed by the user
        target: Candidate string

    Returns:
        Levenshtein distance of the casefolded strings, or None when the
        query is not a subsequence of the target
    """
    query = query.casefold()
    target = target.casefold()
    if not is_subsequence(query, target):
        return None
    return Levenshtein.distance(query, target)


def candidate_distance(query: str, candidate: str) -> Optional[int]:
    """Minimum fuzzy distance over a candidate's components and its full path."""
    representations = path_components(candidate) + [candidate]
    distances = [d for d in (fuzzy_distance(query, r) for r in representations) if d is not None]
    return min(distances) if distances else None


def rank_candidates(query: str,
                    candidates: Iterable[str],
                    max_results: int,
                    threshold: int = DEFAULT_THRESHOLD) -> List[Rank]:
    """
    Rank candidate paths by their fuzzy distance to a query.

    Args:
        query: Text typed by the user
        candidates: Relative directory paths to consider
        max_results: Maximum number of ranks to return
        threshold: Candidates farther than this are not matches

    Returns:
        Ranks ordered by (distance, target), truncated to max_results
    """
    best: Dict[str, int] = {}

    for candidate in candidates:
        distance = candidate_distance(query, candidate)
        if distance is None or distance > threshold:
            continue
        if candidate not in best or distance < best[candidate]:
            best[candidate] = distance

    ranks = order_ranks(Rank(target=target, distance=distance) for target, distance in best.items())
    return ranks[:max(max_results, 0)]
