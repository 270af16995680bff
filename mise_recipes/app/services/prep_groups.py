"""Prep-group ("mise en place") synthesis.

Ingredients are clustered by the first instruction step that mentions them,
so a cook can lay out what each step needs before starting. Groups are always
rebuilt from scratch when ingredients or instructions change.
"""

import logging
import re
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from mise_recipes.app.schemas.recipe import PrepGroup
from mise_recipes.app.services.keyword_extractor import extract_ingredient_keywords, mentions_any
from mise_recipes.app.services.line_normalizer import normalize_text

logger = logging.getLogger(__name__)

REMAINDER_TITLE = "Other Ingredients"
LEGACY_TITLE = "Prep"

_SINGLE_WORD_SECTIONS = re.compile(
    r"^(sauce|dressing|marinade|filling|topping|crust|base|glaze|broth|stock|seasoning)$", re.I
)


def synthesize_prep_groups(
    ingredients: Sequence[str],
    instructions: Sequence[str],
    remainder_title: str = REMAINDER_TITLE,
) -> List[PrepGroup]:
    """Group ingredients by the first instruction step whose text names them.

    Each ingredient is claimed by the lowest-index step that whole-word matches
    any of its keywords. Ingredients no step mentions (including lines with no
    keywords at all) end up in a trailing group without a step index. The
    result partitions `ingredients`; duplicates are tracked by position.
    """
    if not ingredients or not instructions:
        return []

    keywords = [extract_ingredient_keywords(line) for line in ingredients]
    claimed_by: List[Optional[int]] = [None] * len(ingredients)

    for step_index, step in enumerate(instructions):
        for position, terms in enumerate(keywords):
            if claimed_by[position] is None and terms and mentions_any(step, terms):
                claimed_by[position] = step_index

    by_step: Dict[int, List[str]] = {}
    remaining: List[str] = []
    for position, step_index in enumerate(claimed_by):
        if step_index is None:
            remaining.append(ingredients[position])
        else:
            by_step.setdefault(step_index, []).append(ingredients[position])

    groups = [
        PrepGroup(title=f"Step {step_index + 1}", items=items, step_index=step_index, source_group=False)
        for step_index, items in sorted(by_step.items())
    ]
    if remaining:
        groups.append(PrepGroup(title=remainder_title, items=remaining, source_group=False))

    logger.debug(
        "Synthesized %d step groups, %d unmatched ingredients",
        len(by_step),
        len(remaining),
    )
    return groups


def group_ingredients_lexically(ingredients: Sequence[str]) -> List[PrepGroup]:
    """Legacy grouping for records without instructions.

    Ingredients that share a leading keyword ("chicken thighs", "chicken stock")
    are grouped under that keyword; everything else lands in one "Prep" group.
    """
    if not ingredients:
        return []

    leads = []
    for line in ingredients:
        terms = extract_ingredient_keywords(line)
        leads.append(terms[0] if terms else None)
    counts = Counter(lead for lead in leads if lead)

    shared: Dict[str, List[str]] = {}
    rest: List[str] = []
    for line, lead in zip(ingredients, leads):
        if lead and counts[lead] > 1:
            shared.setdefault(lead, []).append(line)
        else:
            rest.append(line)

    groups = [PrepGroup(title=lead.capitalize(), items=items, source_group=False) for lead, items in shared.items()]
    if rest:
        groups.append(PrepGroup(title=LEGACY_TITLE, items=rest, source_group=False))
    return groups


def build_prep_groups(
    ingredients: Sequence[str],
    instructions: Sequence[str],
    source_groups: Optional[Sequence[PrepGroup]] = None,
    remainder_title: str = REMAINDER_TITLE,
) -> List[PrepGroup]:
    """Pick the grouping strategy for a record.

    Section headers taken from the source document win; otherwise groups are
    anchored to instructions, and records without instructions fall back to
    lexical grouping.
    """
    if source_groups:
        return [group.model_copy(update={"source_group": True}) for group in source_groups]
    if instructions:
        return synthesize_prep_groups(ingredients, instructions, remainder_title=remainder_title)
    return group_ingredients_lexically(ingredients)


def is_likely_ingredient_heading(value: str) -> bool:
    """Heuristic for ingredient-list lines that are really section headers."""
    normalized = normalize_text(value)
    if not normalized or re.search(r"\d", normalized):
        return False
    words = normalized.split()
    if normalized.endswith(":"):
        return True
    if re.match(r"^(for|to)\b", normalized, re.I):
        return True
    letters = re.sub(r"[^A-Za-z]", "", normalized)
    uppercase = sum(1 for char in letters if char.isupper())
    if letters and uppercase / len(letters) >= 0.8 and len(words) >= 2 and len(letters) >= 6:
        return True
    return len(words) == 1 and bool(_SINGLE_WORD_SECTIONS.match(normalized))


def normalize_group_title(value: str) -> str:
    return re.sub(r":\s*$", "", normalize_text(value))


def groups_from_heading_lines(lines: Iterable[str], remainder_title: str = REMAINDER_TITLE) -> List[PrepGroup]:
    """Split an ingredient list on its own section headers ("For the sauce:").

    Returns an empty list when the list has no headers.
    """
    groups: List[PrepGroup] = []
    ungrouped: List[str] = []
    current: Optional[PrepGroup] = None

    for line in lines:
        normalized = re.sub(r"^[-*]\s*", "", normalize_text(line))
        if not normalized:
            continue
        if is_likely_ingredient_heading(normalized):
            current = PrepGroup(title=normalize_group_title(normalized), items=[], source_group=True)
            groups.append(current)
        elif current is not None:
            current.items.append(normalized)
        else:
            ungrouped.append(normalized)

    if groups and ungrouped:
        groups.append(PrepGroup(title=remainder_title, items=ungrouped, source_group=True))
    return [group for group in groups if group.items]


def is_ingredient_group_title(value: str) -> bool:
    """True for source section titles, False for derived "Step N" / "Prep" titles."""
    normalized = value.strip().lower()
    if not normalized:
        return False
    if re.search(r"\b(prep|preparation)\b", normalized):
        return False
    return not re.match(r"^step\s+\d+", normalized)


def coerce_prep_groups(value) -> List[PrepGroup]:
    """Decode stored prep groups, dropping anything malformed."""
    if not isinstance(value, list):
        return []

    groups: List[PrepGroup] = []
    for entry in value:
        if isinstance(entry, PrepGroup):
            entry = entry.model_dump()
        if not isinstance(entry, dict):
            continue
        title = entry.get("title")
        raw_items = entry.get("items")
        if not isinstance(title, str) or not title.strip() or not isinstance(raw_items, list):
            continue
        items = [item.strip() for item in raw_items if isinstance(item, str) and item.strip()]
        if not items:
            continue
        step_index = entry.get("stepIndex", entry.get("step_index"))
        source_group = entry.get("sourceGroup", entry.get("source_group"))
        groups.append(
            PrepGroup(
                title=title.strip(),
                items=items,
                step_index=step_index if isinstance(step_index, int) and not isinstance(step_index, bool) else None,
                source_group=source_group if isinstance(source_group, bool) else None,
            )
        )
    return groups


def dump_prep_groups(groups: Iterable[PrepGroup]) -> List[dict]:
    """Persisted shape: {title, items, stepIndex?, sourceGroup?}."""
    return [group.model_dump(by_alias=True, exclude_none=True) for group in groups]


def serialize_prep_groups_to_text(groups: Iterable[PrepGroup]) -> str:
    blocks = []
    for group in groups:
        lines = [group.title] + [f"- {item}" for item in group.items]
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def parse_prep_groups_from_text(text: str) -> List[PrepGroup]:
    """Parse the editable text form: a title line followed by "- item" lines."""
    groups: List[Tuple[str, List[str]]] = []
    current: Optional[List[str]] = None

    for raw in (text or "").splitlines():
        line = raw.strip()
        if not line:
            continue
        is_item = line.startswith(("-", "*"))
        cleaned = re.sub(r"^[-*]\s*", "", line).strip()
        if not cleaned:
            continue
        if is_item:
            if current is None:
                current = []
                groups.append((LEGACY_TITLE, current))
            current.append(cleaned)
        else:
            current = []
            groups.append((cleaned, current))

    return [PrepGroup(title=title, items=items) for title, items in groups if items]
