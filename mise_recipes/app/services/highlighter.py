"""Read-time highlighting of ingredient mentions inside instruction text.

Nothing here is persisted: spans are recomputed on every render from the
record's current prep groups.
"""

import re
from typing import Dict, List, Optional, Pattern, Sequence, Tuple

from mise_recipes.app.schemas.recipe import HighlightSpan, InstructionHighlight, PrepGroup
from mise_recipes.app.services.keyword_extractor import extract_ingredient_keywords, keyword_pattern


def _keyword_owners(groups: Sequence[PrepGroup]) -> Dict[str, int]:
    owners: Dict[str, int] = {}
    for group_index, group in enumerate(groups):
        for item in group.items:
            for keyword in extract_ingredient_keywords(item):
                owners.setdefault(keyword, group_index)
    return owners


def build_matcher(groups: Sequence[PrepGroup]) -> Tuple[Optional[Pattern[str]], Dict[str, int]]:
    """One alternation over every keyword, longest first.

    A keyword used by several groups belongs to the first of them.
    """
    owners = _keyword_owners(groups)
    if not owners:
        return None, owners
    ordered = sorted(owners, key=lambda keyword: (-len(keyword), keyword))
    pattern = re.compile(r"\b(?:" + "|".join(re.escape(keyword) for keyword in ordered) + r")\b", re.I)
    return pattern, owners


def _owner_of(word: str, owners: Dict[str, int]) -> Optional[int]:
    owner = owners.get(word.lower())
    if owner is not None:
        return owner
    # Case-insensitive matching also folds characters such as "İ" and "ſ"
    # whose lower() differs from the keyword.
    for keyword, group_index in owners.items():
        if keyword_pattern(keyword).fullmatch(word):
            return group_index
    return None


def _spans_for(text: str, pattern: Optional[Pattern[str]], owners: Dict[str, int]) -> List[HighlightSpan]:
    if not text:
        return []
    if pattern is None:
        return [HighlightSpan(text=text)]

    spans: List[HighlightSpan] = []
    cursor = 0
    # finditer yields non-overlapping matches in start order; at a given start
    # the longest keyword is tried first.
    for match in pattern.finditer(text):
        start, end = match.span()
        if start > cursor:
            spans.append(HighlightSpan(text=text[cursor:start]))
        spans.append(HighlightSpan(text=match.group(0), group_index=_owner_of(match.group(0), owners)))
        cursor = end
    if cursor < len(text):
        spans.append(HighlightSpan(text=text[cursor:]))
    return spans


def highlight_instruction(groups: Sequence[PrepGroup], instruction: str) -> List[HighlightSpan]:
    """Partition `instruction` into plain and group-tagged spans.

    Concatenating the span texts reproduces the instruction exactly.
    """
    pattern, owners = build_matcher(groups)
    return _spans_for(instruction, pattern, owners)


def highlight_instructions(groups: Sequence[PrepGroup], instructions: Sequence[str]) -> List[InstructionHighlight]:
    pattern, owners = build_matcher(groups)
    return [
        InstructionHighlight(step_index=index, text=text, spans=_spans_for(text, pattern, owners))
        for index, text in enumerate(instructions)
    ]


def palette_slot(group_index: Optional[int], palette_size: int) -> Optional[int]:
    """Index into a fixed, cyclic color palette."""
    if group_index is None or palette_size <= 0:
        return None
    return group_index % palette_size
