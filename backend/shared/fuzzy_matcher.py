# FUZZY MATCHING FOR SYNONYM KEYS

from typing import List, Optional, Sequence, Tuple

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

DEFAULT_THRESHOLD = 0.4


def fuzzy_score(query: str, candidate: str) -> float:
    """
    Distance score between two strings, compared over their full length.

    Returns a value between 0 and 1, where:
    - 0.0 = identical
    - <=0.2 = single typo on a mid-sized word
    - <=0.4 = still accepted by the default threshold
    - 1.0 = nothing in common
    """
    return Levenshtein.normalized_distance(query, candidate)


def rank_matches(
    query: str,
    choices: Sequence[str],
    max_score: Optional[float] = None,
) -> List[Tuple[str, float, int]]:
    """
    Rank *choices* by ascending score against *query*.

    Args:
        query: Cleaned token
        choices: Candidate keys, in index insertion order
        max_score: Drop candidates scoring above this value (default keeps all)

    Returns:
        List of (choice, score, index) tuples; equal scores keep insertion order
    """
    if not query or not choices:
        return []

    matches = process.extract(
        query,
        choices,
        scorer=Levenshtein.normalized_distance,
        limit=None,
        score_cutoff=max_score,
    )
    return sorted(matches, key=lambda match: (match[1], match[2]))


def find_best_match(
    query: str,
    choices: Sequence[str],
    threshold: float = DEFAULT_THRESHOLD,
) -> Optional[Tuple[str, float]]:
    """Return the single closest choice as (choice, score) if it is within *threshold*."""
    ranked = rank_matches(query, choices)
    if not ranked:
        return None
    choice, score, _ = ranked[0]
    if score > threshold:
        return None
    return choice, score
