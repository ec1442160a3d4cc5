"""Edit-distance matching utilities using RapidFuzz."""
from typing import Iterable, List, Optional, Tuple

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein


def levenshtein_distance(a: str, b: str, max_distance: Optional[int] = None) -> int:
    """
    Classic Levenshtein edit distance (insert, delete, substitute all cost 1).

    Args:
        a: First string
        b: Second string
        max_distance: Optional cutoff. Distances above it are reported as
            max_distance + 1, distances at or below it are exact.

    Returns:
        Edit distance between the strings
    """
    return Levenshtein.distance(a, b, score_cutoff=max_distance)


def rank_by_distance(
    query: str,
    choices: Iterable[str],
    max_distance: Optional[int] = None,
    limit: Optional[int] = None
) -> List[Tuple[str, int, int]]:
    """
    Rank choices by edit distance to the query.

    Ties keep the order of `choices`, so callers get a deterministic result
    for a given gazetteer.

    Args:
        query: String to match
        choices: Candidate strings
        max_distance: Drop candidates further away than this
        limit: Maximum number of results to return

    Returns:
        List of tuples (matched_string, distance, index) sorted by distance ascending
    """
    choices = list(choices)
    if not query or not choices:
        return []

    results = process.extract(
        query,
        choices,
        scorer=Levenshtein.distance,
        processor=None,
        score_cutoff=max_distance,
        limit=None
    )
    # extract orders by score only; re-sort so equal distances keep input order
    results = sorted(
        ((match, int(distance), idx) for match, distance, idx in results),
        key=lambda x: (x[1], x[2])
    )
    return results[:limit] if limit is not None else results
