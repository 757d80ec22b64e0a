"""Normalized edit-distance similarity used by every matching strategy."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein

CONTAINMENT_SCORE = 0.9


def normalize_text(text: str | None) -> str:
    return (text or "").lower().strip()


def similarity(a: str | None, b: str | None) -> float:
    """Similarity of two text fragments in [0, 1].

    Exact match scores 1.0. When one string contains the other the score is
    0.9, so merchant codes like "NETFLIX.COM" still rank high against
    "Netflix". Otherwise the score is ``(maxLen - distance) / maxLen`` with
    the Levenshtein distance.
    """
    s1 = normalize_text(a)
    s2 = normalize_text(b)
    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0
    if s1 in s2 or s2 in s1:
        return CONTAINMENT_SCORE

    distance = Levenshtein.distance(s1, s2)
    max_len = max(len(s1), len(s2))
    return (max_len - distance) / max_len
