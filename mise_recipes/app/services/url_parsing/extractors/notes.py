"""Recipe Notes section extraction."""

import copy
import re
from typing import List

from bs4 import BeautifulSoup, Tag

from mise_recipes.app.services.url_parsing.parsing_utils import html_to_lines

NOTES_CLASS_RE = re.compile(r"wprm-recipe-notes|recipe[-_ ]?notes", re.I)
NOTES_HEADING_RE = re.compile(r"^\s*recipe notes[:\s]*$", re.I)
HEADING_TAGS = ["h2", "h3", "h4"]


def _matches_notes_marker(tag: Tag) -> bool:
    if tag.name not in {"div", "section"}:
        return False
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    markers = " ".join(classes) + " " + (tag.get("id") or "")
    return bool(NOTES_CLASS_RE.search(markers))


def _section_containers(soup: BeautifulSoup) -> List[Tag]:
    matches = soup.find_all(_matches_notes_marker)
    # Keep outermost containers only; nested markers would repeat their text.
    matched_ids = {id(tag) for tag in matches}
    outermost = []
    for tag in matches:
        if not any(id(parent) in matched_ids for parent in tag.parents):
            outermost.append(tag)
    return outermost


def _heading_section(soup: BeautifulSoup) -> List[Tag]:
    heading = soup.find(lambda tag: tag.name in HEADING_TAGS and NOTES_HEADING_RE.match(tag.get_text(" ")))
    if heading is None:
        return []
    wrapper = soup.new_tag("div")
    for sibling in heading.find_next_siblings():
        if sibling.name in HEADING_TAGS:
            break
        wrapper.append(copy.copy(sibling))
    return [wrapper]


def extract_notes_section(soup: BeautifulSoup) -> List[str]:
    """Lines of the page's Recipe Notes section, without nutrition lines."""
    sections = _section_containers(soup) or _heading_section(soup)
    lines: List[str] = []
    for section in sections:
        lines.extend(html_to_lines(copy.copy(section)))
    return [line for line in lines if not re.match(r"^nutrition\b", line, re.I)]
