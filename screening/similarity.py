"""Fuzzy string similarity used by the parser and the scoring engine.

Everything that compares strings approximately goes through this module, so
the matching algorithm can change without touching the extraction or scoring
rules. Scores are normalised to ``[0, 1]``.

Two comparisons are offered. Phrase comparison (the default) is token-set
based, so word order and extra words do not matter. Word comparison is plain
normalised edit distance and is meant for single terms such as skill names,
where a subset match (``"react"`` inside ``"react native"``) is not a match.
"""
from __future__ import annotations

from collections.abc import Iterable

from rapidfuzz import fuzz, process


def _scorer(tokens: bool):
    return fuzz.token_set_ratio if tokens else fuzz.ratio


def similarity(a: str, b: str, *, tokens: bool = True) -> float:
    """Case-insensitive similarity of two strings in ``[0, 1]``.

    With ``tokens=True`` ``"aws certified"`` fully matches
    ``"aws certified solutions architect"``; with ``tokens=False`` the
    strings are compared character by character (``"pythn"`` vs
    ``"python"`` ~ 0.91).
    """

    if not a or not b:
        return 0.0
    return _scorer(tokens)(a.lower(), b.lower()) / 100.0


def best_match(query: str, choices: Iterable[str], *, tokens: bool = True) -> tuple[str, float] | None:
    """Return the closest choice and its similarity, or ``None`` for no choices."""

    candidates = [choice.lower() for choice in choices if choice]
    if not query or not candidates:
        return None
    result = process.extractOne(query.lower(), candidates, scorer=_scorer(tokens))
    if result is None:
        return None
    match, score, _ = result
    return match, score / 100.0
