"""
Edit-distance helpers for suggestions and fuzzy matching
"""
from typing import Iterable, Optional

from rapidfuzz.distance import Levenshtein


def levenshtein_distance(s1: str, s2: str) -> int:
    """Number of single-character insertions, deletions or substitutions"""
    return Levenshtein.distance(s1, s2)


def closest_match(name: str, candidates: Iterable[str], max_distance: Optional[int] = None) -> Optional[str]:
    """
    Find the candidate with the smallest edit distance to name.

    Comparison is case-insensitive; ties keep the first candidate seen.

    Args:
        name: Name to match
        candidates: Valid names
        max_distance: Reject matches farther than this

    Returns:
        Best candidate in its original case, or None
    """
    target = name.lower()
    best = None
    best_distance = None

    for candidate in candidates:
        distance = levenshtein_distance(target, candidate.lower())
        if best_distance is None or distance < best_distance:
            best, best_distance = candidate, distance

    if best is None or (max_distance is not None and best_distance > max_distance):
        return None
    return best
