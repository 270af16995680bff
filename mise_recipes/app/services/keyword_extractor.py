"""Reduce ingredient lines to the search terms used for matching them in steps."""

import re
from functools import lru_cache
from typing import List, Pattern

from mise_recipes.app.services.constants import STOP_WORDS, UNIT_WORDS

_PAREN_RE = re.compile(r"\([^)]*\)")
_NON_LETTER_RE = re.compile(r"[^A-Za-z\s]")


def _is_keyword(token: str) -> bool:
    if len(token) <= 2 or token[0].isdigit():
        return False
    return token not in STOP_WORDS and token not in UNIT_WORDS


def extract_ingredient_keywords(line: str) -> List[str]:
    """Return the lowercase keywords of one ingredient line, in order of appearance.

    "1 tsp salt (to taste)" -> ["salt"]; "1 onion, diced" -> ["onion"].
    A line made only of quantities, units and stopwords yields an empty list.
    """
    cleaned = _PAREN_RE.sub(" ", line or "")
    cleaned = cleaned.split(",", 1)[0]
    cleaned = _NON_LETTER_RE.sub(" ", cleaned)

    keywords: List[str] = []
    for token in cleaned.lower().split():
        if _is_keyword(token) and token not in keywords:
            keywords.append(token)
    return keywords


@lru_cache(maxsize=1024)
def keyword_pattern(keyword: str) -> Pattern[str]:
    """Case-insensitive whole-word pattern for a single keyword."""
    return re.compile(rf"\b{re.escape(keyword)}\b", re.I)


def mentions_any(text: str, keywords: List[str]) -> bool:
    return any(keyword_pattern(keyword).search(text) for keyword in keywords)
