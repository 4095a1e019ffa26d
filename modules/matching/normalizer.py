"""
Text normalization shared by keyword compilation and content matching.

Both sides of a comparison must go through normalize_for_keyword_match,
otherwise write-time matches and recalculated matches drift apart.
"""

import re
from typing import Optional

NON_BREAKING_SPACE = "\u00a0"
SOFT_HYPHEN = "\u00ad"

_INVISIBLE_SPACE_PATTERN = re.compile("[\u2000-\u200f\u2028\u2029\u202f\u205f\u3000]")
# Same set as ECMAScript \s: U+FEFF included, U+001C-U+001F excluded
_WHITESPACE_PATTERN = re.compile(
    "[\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]+"
)


def normalize_for_keyword_match(value: Optional[str]) -> str:
    """
    Canonicalize text for keyword comparison.

    Lower-cases, turns non-breaking and invisible spaces into plain spaces,
    drops soft hyphens, folds "ё" into "е", collapses whitespace runs and
    trims.

    Args:
        value: Raw text (None and "" yield "")

    Returns:
        Normalized text
    """
    if not value:
        return ""

    text = value.lower().replace(NON_BREAKING_SPACE, " ")
    text = _INVISIBLE_SPACE_PATTERN.sub(" ", text)
    text = text.replace(SOFT_HYPHEN, "").replace("ё", "е")
    text = _WHITESPACE_PATTERN.sub(" ", text)
    return text.strip(" ")
