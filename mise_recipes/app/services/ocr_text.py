"""Recipe text recovered by OCR (or pasted by hand) into recipe sections.

OCR output is noisy: stray glyphs, page numbers, fragments of neighbouring
columns. Each line is scored and only the span between the first and last
confident lines is kept before heading-driven sectioning.
"""

import logging
import re
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, Field

from mise_recipes.app.services.constants import COOKING_VERBS, FRACTION_MAP, UNIT_WORDS
from mise_recipes.app.services.line_normalizer import (
    merge_notes,
    normalize_ingredients,
    normalize_instructions,
    normalize_notes,
)

logger = logging.getLogger(__name__)

HEADING_MAP = {
    "ingredients": "ingredients",
    "ingredient": "ingredients",
    "what you need": "ingredients",
    "instructions": "instructions",
    "direction": "instructions",
    "directions": "instructions",
    "method": "instructions",
    "steps": "instructions",
    "preparation": "instructions",
    "notes": "notes",
    "tips": "notes",
    "chef s notes": "notes",
}

SHORT_WORDS = frozenset(
    "a am an as at be by do go he if in is it me my no of oh on or so to up us we".split()
)

UNIT_RE = re.compile(r"\b(" + "|".join(sorted(UNIT_WORDS)) + r")\b", re.I)
VERB_RE = re.compile(r"\b(" + "|".join(COOKING_VERBS) + r")\b", re.I)
META_RE = re.compile(r"\b(serves?|yield|prep|cook|total|time)\b", re.I)
PAGE_RE = re.compile(r"\bpage\s*\d+\b", re.I)
PUNCT_TOKEN_RE = re.compile(r"^[^A-Za-z0-9]+$")

DEFAULT_TITLE = "Untitled Recipe"


class LineAnalysis(NamedTuple):
    cleaned: str
    keep: bool
    score: int
    anchor: bool


class OcrRecipe(BaseModel):
    title: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)
    servings: Optional[int] = None
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None


def _normalize_heading(value: str) -> str:
    lowered = re.sub(r"[^a-z0-9\s]", " ", value.lower())
    return re.sub(r"\s+", " ", lowered).strip()


def parse_heading(line: str) -> Optional[str]:
    return HEADING_MAP.get(_normalize_heading(line))


def _replace_ocr_characters(value: str) -> str:
    for glyph, replacement in FRACTION_MAP.items():
        value = value.replace(glyph, replacement)
    value = re.sub("[‘’]", "'", value)
    value = re.sub("[“”]", '"', value)
    return value.replace("°", "")


def normalize_ocr_line(line: str) -> str:
    normalized = _replace_ocr_characters(line)
    normalized = re.sub(r"\|+", " ", normalized)
    normalized = re.sub(r"_{2,}", " ", normalized)
    normalized = re.sub(r"[^\x20-\x7E]", " ", normalized)
    tokens = normalized.split()

    # Leading punctuation and unknown one- or two-letter fragments are OCR debris.
    start = 0
    while start < len(tokens):
        token = tokens[start]
        lower = token.lower()
        if PUNCT_TOKEN_RE.match(token):
            start += 1
        elif re.match(r"^[A-Za-z]{1,2}$", token) and lower not in SHORT_WORDS and lower not in UNIT_WORDS:
            start += 1
        else:
            break
    return " ".join(token for token in tokens[start:] if not PUNCT_TOKEN_RE.match(token))


def analyze_ocr_line(line: str) -> LineAnalysis:
    cleaned = normalize_ocr_line(line)
    if not cleaned or PAGE_RE.search(cleaned):
        return LineAnalysis(cleaned, False, -1, False)

    total_chars = len(re.sub(r"\s+", "", cleaned))
    letters = len(re.findall(r"[A-Za-z]", cleaned))
    digits = len(re.findall(r"\d", cleaned))
    symbols = len(re.findall(r"[^A-Za-z0-9\s]", cleaned))
    symbol_ratio = symbols / total_chars if total_chars else 1
    tokens = cleaned.split()
    short_ratio = sum(1 for token in tokens if len(token) <= 2) / len(tokens)
    single_char_ratio = sum(1 for token in tokens if len(token) == 1) / len(tokens)

    has_unit = bool(UNIT_RE.search(cleaned))
    has_verb = bool(VERB_RE.search(cleaned))
    is_heading = parse_heading(cleaned) is not None
    has_meta = bool(META_RE.search(cleaned))
    structural = has_unit or is_heading or has_meta

    score = 0
    if is_heading:
        score += 3
    if has_meta:
        score += 2
    if has_unit:
        score += 2
    if has_verb:
        score += 2
    if letters >= 6:
        score += 1
    if len(cleaned) >= 24:
        score += 1
    if digits and letters:
        score += 1
    if not digits and len(tokens) <= 3 and letters >= 4:
        score += 1

    if symbol_ratio > 0.35:
        score -= 2
    if short_ratio > 0.6 and not structural:
        score -= 2
    if single_char_ratio > 0.4 and not structural:
        score -= 2
    if len(cleaned) <= 3 and not has_unit and not has_meta:
        score -= 2

    anchor = score >= 2
    single_word_keep = len(tokens) == 1 and letters >= 4 and symbol_ratio <= 0.1
    if anchor or single_word_keep:
        return LineAnalysis(cleaned, True, score, anchor)
    if score < 1:
        return LineAnalysis(cleaned, False, score, anchor)
    strong_tokens = sum(1 for token in tokens if len(token) >= 3)
    return LineAnalysis(cleaned, len(cleaned) >= 20 or strong_tokens >= 2, score, anchor)


def clean_ocr_text(text: str) -> str:
    """Drop noise lines and anything outside the first/last confident line."""
    analyses = [analyze_ocr_line(line) for line in (text or "").splitlines()]
    anchors = [index for index, analysis in enumerate(analyses) if analysis.anchor]
    if len(anchors) >= 2:
        window = analyses[anchors[0] : anchors[-1] + 1]
    else:
        window = analyses
    kept = [analysis.cleaned for analysis in window if analysis.keep]
    logger.debug("OCR clean-up kept %d of %d lines", len(kept), len(analyses))
    return "\n".join(kept).strip()


def _parse_servings(line: str) -> Optional[int]:
    match = re.search(r"\b(?:serves|yield)\s+(\d+)", line, re.I)
    return int(match.group(1)) if match else None


def _parse_minutes(line: str, label: str) -> Optional[int]:
    match = re.search(rf"\b{label}(?:\s*time)?\s*[:\-]?\s*(\d+)", line, re.I)
    return int(match.group(1)) if match else None


def parse_ocr_text(text: str) -> OcrRecipe:
    """Split cleaned OCR text into title, sections and timing metadata.

    The first non-heading line is the title. Lines before the first section
    heading only contribute metadata.
    """
    lines = [line.strip() for line in clean_ocr_text(text).splitlines() if line.strip()]
    recipe = OcrRecipe()
    sections = {"ingredients": [], "instructions": [], "notes": []}
    current: Optional[str] = None

    for index, line in enumerate(lines):
        heading = parse_heading(line)
        if heading:
            current = heading
            continue
        if recipe.title is None and index == 0:
            recipe.title = line
            continue

        recipe.servings = recipe.servings or _parse_servings(line)
        recipe.prep_time = recipe.prep_time or _parse_minutes(line, "prep")
        recipe.cook_time = recipe.cook_time or _parse_minutes(line, "cook")

        if current == "instructions":
            sections[current].append(re.sub(r"^\d+[).]\s*", "", line))
        elif current:
            sections[current].append(re.sub(r"^[-*]\s*", "", line))

    ingredients = normalize_ingredients(sections["ingredients"])
    instructions = normalize_instructions(sections["instructions"])
    recipe.ingredients = ingredients.lines
    recipe.instructions = instructions.lines
    recipe.notes = merge_notes(
        ingredients.notes,
        instructions.notes,
        normalize_notes(sections["notes"]),
        exclude=ingredients.lines + instructions.lines,
    )
    logger.info(
        "Parsed OCR text: ingredients=%d, instructions=%d, notes=%d",
        len(recipe.ingredients),
        len(recipe.instructions),
        len(recipe.notes),
    )
    return recipe
