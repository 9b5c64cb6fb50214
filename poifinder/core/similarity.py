# poifinder/core/similarity.py
from __future__ import annotations

import string

from rapidfuzz.distance import Levenshtein

_EDGE_CHARS = string.punctuation + string.whitespace


def normalize_name(name: str) -> str:
    """
    Lowercase, trim, and drop leading/trailing punctuation.
    Internal punctuation stays: "McDonald's" must not become "mcdonalds".
    """
    return (name or "").lower().strip(_EDGE_CHARS)


def similarity(a: str, b: str) -> float:
    """1 - levenshtein(a, b) / max(len(a), len(b)) on normalized names, in [0, 1]."""
    s1 = normalize_name(a)
    s2 = normalize_name(b)
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0
    dist = Levenshtein.distance(s1, s2)
    return 1.0 - dist / max(len(s1), len(s2))
