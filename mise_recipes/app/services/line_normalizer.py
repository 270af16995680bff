"""Cleaning of raw ingredient / instruction / notes text.

The same routines run on textarea input, OCR output and text pulled out of
scraped HTML, so entity decoding happens here rather than in the extractors.
Cleaning is conservative: wording is preserved, only markup residue, list
bullets, broken parentheses and whitespace are touched. Lines that are really
footnotes ("See note 2", "Note 1: use unsalted butter") are moved to a
separate notes bucket.
"""

import enum
import logging
import re
from typing import Iterable, List, Optional, Sequence, Set, Tuple, Union

from pydantic import BaseModel, Field

from mise_recipes.app.services.constants import FRACTION_CHARS, FRACTION_MAP, HTML_ENTITY_MAP

logger = logging.getLogger(__name__)

RawText = Union[str, Sequence[str], None]


class LineKind(str, enum.Enum):
    INGREDIENTS = "ingredients"
    INSTRUCTIONS = "instructions"
    NOTES = "notes"


class NormalizedLines(BaseModel):
    lines: List[str] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)


_NAMED_ENTITY_RE = re.compile(r"&(?:amp|quot|#39|#x27|lt|gt|nbsp|ndash|mdash);")
_DECIMAL_ENTITY_RE = re.compile(r"&#(\d+);")
_HEX_ENTITY_RE = re.compile(r"&#x([0-9a-fA-F]+);")
_ATTACHED_FRACTION_RE = re.compile(rf"(\d)([{FRACTION_CHARS}])")
_FRACTION_RE = re.compile(rf"[{FRACTION_CHARS}]")

_CHECKBOX_PREFIX_RE = re.compile(r"^\s*(?:\[\s*[xX]?\s*\]\s*)+")
_BULLET_PREFIX_RE = re.compile(r"^\s*(?:(?:[•·▪◦□☐☑■]|-|\*)\s+)+")
_BOX_GLYPH_RE = re.compile(r"[☐-☒■-▫◻◼]")
_PAREN_COMMA_RE = re.compile(r"\(\s*,\s*")
_EMPTY_PAREN_RE = re.compile(r"\(\s*\)")
_SPACE_BEFORE_CLOSE_RE = re.compile(r"\s+\)")
_MULTI_OPEN_RE = re.compile(r"\({2,}")
_MULTI_CLOSE_RE = re.compile(r"\){2,}")
_TRAILING_OPEN_RE = re.compile(r"\(\s*$")
_LEADING_CLOSE_RE = re.compile(r"^\s*\)")

_FOOTNOTE_LINE_RE = re.compile(r"^\(?\s*(?:see\s+)?notes?(?:\s*#?\d+)?\s*(?:[:.)\-]|$)", re.I)
_INLINE_NOTE_RE = re.compile(r"\(\s*((?:see\s+)?notes?\b[^)]*)\)", re.I)
_BARE_NOTE_REF_RE = re.compile(r"^(?:see\s+)?notes?\s*#?\d*$", re.I)
_METADATA_LINE_RE = re.compile(
    r"^(?:course|cuisine|keywords?|servings?|yield|author|calories|"
    r"prep(?:\s+time)?|cook(?:\s+time)?|total(?:\s+time)?|equipment)\s*:",
    re.I,
)

_NOTE_HEADING_RE = re.compile(r"^(recipe\s+)?notes?:?\s*$", re.I)
_NUMBERED_NOTE_HEADING_RE = re.compile(r"^note\s*\d+$", re.I)
_NOTE_MARKER_RE = re.compile(r"(^|\s)(\d+)[.)]\s+")
_DESCRIPTION_NOTE_RE = re.compile(r"\bsee\s+note\s*\d+", re.I)
_LEADING_NOTE_RE = re.compile(r"^note\s*\d+", re.I)

_MAX_CLEAN_PASSES = 4


def decode_html_entities(value: str) -> str:
    """Decode the entities recipe sites leave behind, plus vulgar fraction glyphs."""
    decoded = _NAMED_ENTITY_RE.sub(lambda m: HTML_ENTITY_MAP.get(m.group(0), m.group(0)), value)
    decoded = _DECIMAL_ENTITY_RE.sub(lambda m: _codepoint(m.group(1), 10), decoded)
    decoded = _HEX_ENTITY_RE.sub(lambda m: _codepoint(m.group(1), 16), decoded)
    decoded = _ATTACHED_FRACTION_RE.sub(r"\1 \2", decoded)
    return _FRACTION_RE.sub(lambda m: FRACTION_MAP[m.group(0)], decoded)


def _codepoint(digits: str, base: int) -> str:
    try:
        return chr(int(digits, base))
    except (ValueError, OverflowError):
        return ""


def collapse_whitespace(value: str) -> str:
    return re.sub(r"\s+", " ", value or "").strip()


def normalize_text(value: Optional[str]) -> str:
    """Entity-decode and whitespace-collapse a single string."""
    return collapse_whitespace(decode_html_entities(value or ""))


def _balance_parentheses(value: str) -> str:
    opened = value.count("(")
    closed = value.count(")")
    if opened > closed:
        return value + ")" * (opened - closed)
    while closed > opened:
        stripped = re.sub(r"\)\s*$", "", value)
        if stripped == value:
            break
        value = stripped
        closed -= 1
    return value


def _clean_once(line: str) -> str:
    cleaned = decode_html_entities(line)
    cleaned = _CHECKBOX_PREFIX_RE.sub("", cleaned)
    cleaned = _BULLET_PREFIX_RE.sub("", cleaned)
    cleaned = _BOX_GLYPH_RE.sub("", cleaned)
    cleaned = _PAREN_COMMA_RE.sub("(", cleaned)
    cleaned = _EMPTY_PAREN_RE.sub("", cleaned)
    cleaned = _SPACE_BEFORE_CLOSE_RE.sub(")", cleaned)
    cleaned = _MULTI_OPEN_RE.sub("(", cleaned)
    cleaned = _MULTI_CLOSE_RE.sub(")", cleaned)
    cleaned = _TRAILING_OPEN_RE.sub("", cleaned)
    cleaned = _LEADING_CLOSE_RE.sub("", cleaned)
    return collapse_whitespace(_balance_parentheses(cleaned))


def clean_line(line: str) -> str:
    """Clean one physical line; repeated until the result stops changing."""
    current = line
    for _ in range(_MAX_CLEAN_PASSES):
        cleaned = _clean_once(current)
        if cleaned == current:
            break
        current = cleaned
    return current


def split_raw_lines(raw: RawText) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        chunks: Iterable[str] = [raw]
    else:
        chunks = (item for item in raw if isinstance(item, str))
    lines: List[str] = []
    for chunk in chunks:
        lines.extend(chunk.splitlines())
    return lines


def is_footnote_line(line: str) -> bool:
    return bool(_FOOTNOTE_LINE_RE.match(line))


def _strip_inline_notes(line: str) -> Tuple[str, List[str]]:
    notes: List[str] = []

    def _collect(match: re.Match) -> str:
        inner = collapse_whitespace(match.group(1))
        if not _BARE_NOTE_REF_RE.match(inner):
            notes.append(inner)
        return " "

    stripped = _INLINE_NOTE_RE.sub(_collect, line)
    return clean_line(stripped), notes


def normalize_lines(raw: RawText, kind: Union[LineKind, str] = LineKind.INGREDIENTS) -> NormalizedLines:
    """Clean a block of raw text for one recipe section.

    `raw` may be a multi-line string or a list of (possibly multi-line) strings.
    Running the result's lines through again is a no-op.
    """
    kind = LineKind(kind)
    result = NormalizedLines()

    for raw_line in split_raw_lines(raw):
        line = clean_line(raw_line)
        if not line:
            continue

        if kind is LineKind.NOTES:
            result.lines.append(line)
            continue

        if is_footnote_line(line):
            result.notes.append(line)
            continue

        if kind is LineKind.INGREDIENTS:
            for _ in range(_MAX_CLEAN_PASSES):
                stripped, inline_notes = _strip_inline_notes(line)
                result.notes.extend(inline_notes)
                if stripped == line:
                    break
                line = stripped
            if not line:
                continue
            # Stripping "(note 1)" can leave a bare footnote such as "Note".
            if is_footnote_line(line):
                result.notes.append(line)
                continue
        elif _METADATA_LINE_RE.match(line):
            logger.debug("Dropping metadata line from instructions: %s", line[:60])
            continue

        result.lines.append(line)

    return result


def normalize_ingredients(raw: RawText) -> NormalizedLines:
    return normalize_lines(raw, LineKind.INGREDIENTS)


def normalize_instructions(raw: RawText) -> NormalizedLines:
    return normalize_lines(raw, LineKind.INSTRUCTIONS)


def normalize_notes(raw: RawText) -> List[str]:
    return normalize_lines(raw, LineKind.NOTES).lines


def _split_numbered_notes(value: str) -> List[Tuple[str, Optional[int]]]:
    normalized = re.sub(r"\\([.)])", r"\1", normalize_text(value))
    if not normalized:
        return []

    starts = [m.start() + len(m.group(1)) for m in _NOTE_MARKER_RE.finditer(normalized)]
    if len(starts) < 2:
        single = re.match(r"^(\d+)[.)]\s+(.+)$", normalized)
        if single:
            return [(collapse_whitespace(single.group(2)), int(single.group(1)))]
        return [(normalized, None)]

    if starts[0] > 0:
        starts.insert(0, 0)
    starts.append(len(normalized))
    entries: List[Tuple[str, Optional[int]]] = []
    for start, end in zip(starts, starts[1:]):
        segment = collapse_whitespace(normalized[start:end])
        numbered = re.match(r"^(\d+)[.)]\s*(.+)$", segment)
        if numbered:
            entries.append((collapse_whitespace(numbered.group(2)), int(numbered.group(1))))
        elif segment:
            entries.append((segment, None))
    return entries


def merge_notes(*buckets: Iterable[str], exclude: Iterable[str] = ()) -> List[str]:
    """Combine note buckets into one de-duplicated, ordered list.

    Inline numbered notes ("1. Use butter. 2. Chill overnight.") are split,
    bare "Note 3" / "Recipe Notes" headings dropped, and a note that repeats an
    ingredient or instruction line (given in `exclude`) is skipped.
    """
    excluded: Set[str] = {line.lower() for line in exclude}
    merged: List[Tuple[str, Optional[int]]] = []
    seen = {}

    for bucket in buckets:
        for note in bucket or []:
            for text, number in _split_numbered_notes(note):
                cleaned = re.sub(r"^[-*]\s*", "", text)
                cleaned = re.sub(r"^\d+[.)]\s*", "", cleaned).strip()
                if not cleaned or _NOTE_HEADING_RE.match(cleaned) or _NUMBERED_NOTE_HEADING_RE.match(cleaned):
                    continue
                key = cleaned.lower()
                if key in excluded:
                    continue
                if key in seen:
                    index = seen[key]
                    if number is not None and merged[index][1] is None:
                        merged[index] = (cleaned, number)
                    continue
                seen[key] = len(merged)
                merged.append((cleaned, number))

    return [f"{number}. {text}" if number is not None else text for text, number in merged]


def clean_description(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    cleaned = re.sub(r"\brecipe video above\b\.?", "", normalize_text(value), flags=re.I)
    cleaned = collapse_whitespace(cleaned)
    return cleaned or None


def split_description_notes(value: Optional[str]) -> Tuple[Optional[str], List[str]]:
    """Move footnote sentences ("See note 2 for swaps.") out of a description."""
    if not value:
        return None, []
    kept: List[str] = []
    notes: List[str] = []
    for sentence in re.split(r"(?<=[.!?])\s+", value):
        sentence = sentence.strip()
        if not sentence:
            continue
        if _DESCRIPTION_NOTE_RE.search(sentence) or _LEADING_NOTE_RE.match(sentence):
            notes.append(sentence)
        else:
            kept.append(sentence)
    description = " ".join(kept).strip()
    return description or None, notes


def parse_tags(value: Optional[str]) -> List[str]:
    tags: List[str] = []
    for tag in (value or "").split(","):
        tag = tag.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags
