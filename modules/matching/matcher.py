"""
Keyword matching against normalized text with word boundary checks.

Boundaries are checked by inspecting the characters around each literal
occurrence, so keyword text is never interpreted as a pattern.
"""

from typing import Iterable, List, Optional, Set

from core.logger import get_logger
from core.state import KeywordState
from modules.matching.candidates import MatchCandidate, compile_candidates, is_word_char
from modules.matching.normalizer import normalize_for_keyword_match

logger = get_logger(__name__)


def matches_candidate(normalized_text: str, candidate: MatchCandidate) -> bool:
    """
    Check whether normalized text contains the candidate.

    Args:
        normalized_text: Text already passed through normalize_for_keyword_match
        candidate: Compiled keyword candidate

    Returns:
        True on the first occurrence that satisfies the boundary rule
    """
    word = candidate.normalized_word
    if not word or not normalized_text:
        return False

    text_length = len(normalized_text)
    start = normalized_text.find(word)
    while start != -1:
        end = start + len(word)
        starts_inside_word = (
            candidate.needs_start_boundary
            and start > 0
            and is_word_char(normalized_text[start - 1])
        )
        ends_inside_word = (
            candidate.needs_end_boundary
            and end < text_length
            and is_word_char(normalized_text[end])
        )
        if not starts_inside_word and not ends_inside_word:
            return True
        start = normalized_text.find(word, start + 1)

    return False


def find_matched_keyword_ids_in_text(
    normalized_text: str,
    candidates: Iterable[MatchCandidate]
) -> Set[int]:
    """Ids of candidates found in already normalized text."""
    if not normalized_text:
        return set()

    return {
        candidate.id
        for candidate in candidates
        if matches_candidate(normalized_text, candidate)
    }


def matched_keyword_ids(text: Optional[str], candidates: Iterable[MatchCandidate]) -> Set[int]:
    """
    Compute the set of keyword ids matched by a piece of content.

    Args:
        text: Raw content text (may be None)
        candidates: Compiled candidates (full list or a caller-chosen subset)

    Returns:
        Matched keyword ids; empty when the text normalizes to nothing
    """
    return find_matched_keyword_ids_in_text(normalize_for_keyword_match(text), candidates)


class KeywordMatcher:
    """Holds one compiled candidate list and matches many texts against it."""

    def __init__(self, candidates: List[MatchCandidate]):
        """
        Initialize keyword matcher.

        Args:
            candidates: Compiled candidates, reused for every text
        """
        self.candidates = candidates
        logger.debug("Initialized KeywordMatcher", candidate_count=len(self.candidates))

    @classmethod
    def from_keywords(cls, keywords: Iterable[KeywordState]) -> "KeywordMatcher":
        """Compile keywords once and wrap them in a matcher."""
        return cls(compile_candidates(keywords))

    def __len__(self) -> int:
        return len(self.candidates)

    def match(self, text: Optional[str]) -> Set[int]:
        """Matched keyword ids for raw text."""
        return matched_keyword_ids(text, self.candidates)

    def match_normalized(self, normalized_text: str) -> Set[int]:
        """Matched keyword ids for text that is already normalized."""
        return find_matched_keyword_ids_in_text(normalized_text, self.candidates)
