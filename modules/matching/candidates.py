"""
Compilation of keyword records into match candidates.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from core.logger import get_logger
from core.state import KeywordState
from modules.matching.normalizer import normalize_for_keyword_match

logger = get_logger(__name__)


def is_word_char(char: str) -> bool:
    """ASCII letters and digits, underscore, and the Cyrillic block U+0400-U+04FF."""
    if not char:
        return False
    return (
        ("a" <= char <= "z")
        or ("A" <= char <= "Z")
        or ("0" <= char <= "9")
        or char == "_"
        or "\u0400" <= char <= "\u04ff"
    )


@dataclass(frozen=True)
class MatchCandidate:
    """Normalized, matchable projection of a keyword for one matching pass."""

    id: int
    normalized_word: str
    is_phrase: bool
    needs_start_boundary: bool
    needs_end_boundary: bool


def compile_candidate(keyword: KeywordState) -> Optional[MatchCandidate]:
    """
    Build a candidate from a keyword.

    Single words only require a start boundary, so "кот" also hits
    "кота" and "котом". Phrases require both ends to fall on a boundary.

    Args:
        keyword: Keyword record

    Returns:
        Candidate, or None when the word normalizes to nothing
    """
    normalized = normalize_for_keyword_match(keyword.word)
    if not normalized:
        return None

    return MatchCandidate(
        id=keyword.id,
        normalized_word=normalized,
        is_phrase=bool(keyword.is_phrase),
        needs_start_boundary=is_word_char(normalized[0]),
        needs_end_boundary=bool(keyword.is_phrase) and is_word_char(normalized[-1]),
    )


def compile_candidates(keywords: Iterable[KeywordState]) -> List[MatchCandidate]:
    """Compile keywords, dropping the ones that cannot match anything."""
    candidates = []
    total = 0
    for keyword in keywords:
        total += 1
        candidate = compile_candidate(keyword)
        if candidate is not None:
            candidates.append(candidate)

    logger.debug("Compiled keyword candidates", keywords=total, candidates=len(candidates))
    return candidates
