"""
Keyword match engine: normalization, boundary matching and recalculation.
"""

from modules.matching.normalizer import normalize_for_keyword_match
from modules.matching.candidates import MatchCandidate, compile_candidate, compile_candidates
from modules.matching.matcher import KeywordMatcher, matched_keyword_ids, matches_candidate
from modules.matching.reconciler import KeywordMatchReconciler

__all__ = [
    "normalize_for_keyword_match",
    "MatchCandidate",
    "compile_candidate",
    "compile_candidates",
    "KeywordMatcher",
    "matched_keyword_ids",
    "matches_candidate",
    "KeywordMatchReconciler",
]
