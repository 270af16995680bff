"""Normalization of every inbound recipe (import, OCR text, create, edit)."""

import logging
from typing import Iterable, List, Optional, Sequence
from urllib.parse import urlparse

from mise_recipes.app.core.config import get_settings
from mise_recipes.app.schemas.recipe import PrepGroup, RecipeCreate
from mise_recipes.app.services.line_normalizer import (
    clean_description,
    merge_notes,
    normalize_ingredients,
    normalize_instructions,
    normalize_notes,
    split_description_notes,
)
from mise_recipes.app.services.ocr_text import DEFAULT_TITLE, parse_ocr_text
from mise_recipes.app.services.prep_groups import (
    build_prep_groups,
    dump_prep_groups,
    groups_from_heading_lines,
    normalize_group_title,
)
from mise_recipes.app.services.url_parsing.models import ScrapedRecipe

logger = logging.getLogger(__name__)


def _remainder_title(remainder_title: Optional[str]) -> str:
    return remainder_title or get_settings().prep_group_remainder_title


def title_from_url(source_url: Optional[str]) -> Optional[str]:
    hostname = urlparse(source_url or "").hostname
    if not hostname:
        return None
    return hostname[4:] if hostname.startswith("www.") else hostname


def clean_source_groups(groups: Iterable[PrepGroup], remainder_title: Optional[str] = None):
    """Normalize the items of markup-declared groups.

    Items of untitled groups are collected in a trailing remainder group.
    Returns (groups, flattened ingredient lines in page order, footnotes
    pulled from items).
    """
    cleaned_groups: List[PrepGroup] = []
    untitled: List[str] = []
    ingredients: List[str] = []
    notes: List[str] = []
    for group in groups:
        normalized = normalize_ingredients(group.items)
        notes.extend(normalized.notes)
        if not normalized.lines:
            continue
        ingredients.extend(normalized.lines)
        title = normalize_group_title(group.title)
        if title:
            cleaned_groups.append(PrepGroup(title=title, items=normalized.lines, source_group=True))
        else:
            untitled.extend(normalized.lines)

    if not cleaned_groups:
        return [], ingredients, notes
    if untitled:
        cleaned_groups.append(PrepGroup(title=_remainder_title(remainder_title), items=untitled, source_group=True))
    return cleaned_groups, ingredients, notes


def covers_ingredients(grouped: Sequence[str], ingredients: Sequence[str]) -> bool:
    """True when every ingredient line appears among the grouped lines."""
    available = {line.lower() for line in grouped}
    return all(line.lower() in available for line in ingredients)


def normalize_scraped_recipe(
    candidate: ScrapedRecipe,
    source_url: Optional[str] = None,
    remainder_title: Optional[str] = None,
) -> RecipeCreate:
    """Turn an extracted candidate into a fully normalized recipe payload."""
    remainder = _remainder_title(remainder_title)
    normalized_ingredients = normalize_ingredients(candidate.ingredients)
    instructions = normalize_instructions(candidate.instructions)

    source_groups, grouped_ingredients, group_notes = clean_source_groups(candidate.ingredient_groups, remainder)
    if source_groups and not covers_ingredients(grouped_ingredients, normalized_ingredients.lines):
        logger.warning(
            "Card ingredient groups miss %d of %d ingredient lines; ignoring them",
            len({line.lower() for line in normalized_ingredients.lines} - {line.lower() for line in grouped_ingredients}),
            len(normalized_ingredients.lines),
        )
        source_groups, group_notes = [], []
    if source_groups:
        ingredients = grouped_ingredients
    else:
        source_groups = groups_from_heading_lines(normalized_ingredients.lines, remainder_title=remainder)
        if source_groups:
            ingredients = [item for group in source_groups for item in group.items]
        else:
            ingredients = normalized_ingredients.lines

    description, description_notes = split_description_notes(clean_description(candidate.description))
    notes = merge_notes(
        normalized_ingredients.notes,
        group_notes,
        instructions.notes,
        normalize_notes(candidate.notes),
        description_notes,
        exclude=ingredients + instructions.lines,
    )
    prep_groups = build_prep_groups(
        ingredients,
        instructions.lines,
        source_groups=source_groups,
        remainder_title=remainder,
    )
    logger.info(
        "Normalized recipe: ingredients=%d, instructions=%d, notes=%d, prep_groups=%d (source=%s)",
        len(ingredients),
        len(instructions.lines),
        len(notes),
        len(prep_groups),
        bool(source_groups),
    )

    return RecipeCreate(
        title=candidate.title or title_from_url(source_url) or DEFAULT_TITLE,
        description=description,
        source_url=source_url,
        image_url=candidate.image_url,
        video_url=candidate.video_url,
        servings=candidate.servings,
        prep_time_minutes=candidate.prep_time,
        cook_time_minutes=candidate.cook_time,
        tags=candidate.tags,
        ingredients=ingredients,
        instructions=instructions.lines,
        notes=notes,
        prep_groups=prep_groups,
    )


def normalize_text_recipe(
    text: str,
    title: Optional[str] = None,
    remainder_title: Optional[str] = None,
) -> RecipeCreate:
    """Build a recipe payload from OCR output or pasted plain text."""
    parsed = parse_ocr_text(text)
    return RecipeCreate(
        title=(title or "").strip() or parsed.title or DEFAULT_TITLE,
        servings=parsed.servings,
        prep_time_minutes=parsed.prep_time,
        cook_time_minutes=parsed.cook_time,
        ingredients=parsed.ingredients,
        instructions=parsed.instructions,
        notes=parsed.notes,
        prep_groups=build_prep_groups(
            parsed.ingredients,
            parsed.instructions,
            remainder_title=_remainder_title(remainder_title),
        ),
    )


def prepare_recipe_fields(
    ingredients: Sequence[str],
    instructions: Sequence[str],
    notes: Sequence[str],
    prep_groups: Optional[Sequence[PrepGroup]] = None,
    remainder_title: Optional[str] = None,
) -> dict:
    """Normalize the list fields of a created or edited record.

    Prep groups are recomputed from the normalized lines unless explicit
    groups are supplied; the result is ready to assign to the stored record.
    """
    normalized_ingredients = normalize_ingredients(list(ingredients))
    normalized_instructions = normalize_instructions(list(instructions))
    merged_notes = merge_notes(
        normalize_notes(list(notes)),
        normalized_ingredients.notes,
        normalized_instructions.notes,
        exclude=normalized_ingredients.lines + normalized_instructions.lines,
    )
    if prep_groups is None:
        prep_groups = build_prep_groups(
            normalized_ingredients.lines,
            normalized_instructions.lines,
            remainder_title=_remainder_title(remainder_title),
        )
    return {
        "ingredients": normalized_ingredients.lines,
        "instructions": normalized_instructions.lines,
        "notes": merged_notes,
        "prep_groups": dump_prep_groups(prep_groups),
    }
