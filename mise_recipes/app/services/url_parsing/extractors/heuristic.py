"""Heuristic recipe extraction from HTML structure.

Used when a page carries no JSON-LD recipe: the main content node is walked
in document order and split into sections by Ingredients / Instructions /
Notes headings. Pages without such headings fall back to scoring lists.
"""

import copy
import logging
import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from mise_recipes.app.services.prep_groups import is_likely_ingredient_heading
from mise_recipes.app.services.url_parsing.extractors.meta import meta_title
from mise_recipes.app.services.url_parsing.models import ScrapedRecipe
from mise_recipes.app.services.url_parsing.parsing_utils import clean_text, parse_servings_from_text

logger = logging.getLogger(__name__)

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

INGREDIENT_HEADING_RE = re.compile(r"^(ingredients?|what you('ll)? need)\s*:?$", re.I)
INGREDIENT_SUBHEADING_RE = re.compile(r"^(for\s+the\s+.+|sauce|dressing|marinade|filling|topping)\s*:?$", re.I)
INSTRUCTION_HEADING_RE = re.compile(
    r"^(instructions?|directions?|method|preparation|steps?|how\s+to\s+make(\s+it)?)\s*:?$", re.I
)
NOTE_HEADING_RE = re.compile(r"^(notes?|tips?|cook'?s\s+notes?|recipe\s+notes?)\s*:?$", re.I)
STEP_NUMBER_RE = re.compile(r"^(?:step\s*)?\d+[.):]\s+", re.I)

QUANTITY_RE = re.compile(r"\d|\b(cup|cups|tsp|tbsp|tablespoon|teaspoon|ounce|oz|gram|g|kg|ml|l|lb)\b", re.I)
ACTION_VERB_RE = re.compile(
    r"\b(cook|bake|add|mix|stir|heat|pour|season|chop|slice|dice|mince|preheat|whisk|combine|simmer|serve)\b",
    re.I,
)


def clean_soup_for_content(soup: BeautifulSoup) -> None:
    """Remove obvious boilerplate nodes before extracting candidate content."""
    for noisy in soup.find_all(["header", "footer", "nav", "aside", "form"]):
        noisy.decompose()
    for tag in soup.find_all(["script", "style", "noscript", "link", "meta"]):
        tag.decompose()


def find_main_node(soup: BeautifulSoup) -> Optional[Tag]:
    """Find the main content node in the soup."""
    return (
        soup.find(attrs={"itemtype": re.compile("Recipe", re.I)})
        or soup.find("article")
        or soup.find("main")
        or soup.body
    )


def _heading_kind(text: str) -> Optional[str]:
    if INGREDIENT_HEADING_RE.match(text):
        return "ingredients"
    if INSTRUCTION_HEADING_RE.match(text):
        return "instructions"
    if NOTE_HEADING_RE.match(text):
        return "notes"
    return None


def _is_subheading(text: str) -> bool:
    # Short label only; "For the best results, ..." is prose.
    return bool(INGREDIENT_SUBHEADING_RE.match(text)) and len(text.split()) <= 6 and not text.endswith((".", "!", "?"))


def _content_nodes(container: Tag) -> List[Tag]:
    nodes = []
    for node in container.find_all(HEADING_TAGS + ["li", "p"]):
        if node.name == "p" and node.find_parent("li") is not None:
            continue
        if node.name == "li" and node.find("li") is not None:
            continue
        nodes.append(node)
    return nodes


def split_sections(container: Tag) -> Dict[str, List[str]]:
    """Walk headings, list items and paragraphs into recipe sections.

    Ingredient sub-headings ("For the sauce:") stay in the ingredient lines so
    they can become source groups; any other unrelated heading ends a section.
    """
    sections: Dict[str, List[str]] = {"ingredients": [], "instructions": [], "notes": []}
    current: Optional[str] = None

    for node in _content_nodes(container):
        text = clean_text(node.get_text(" ", strip=True))
        if not text:
            continue
        kind = _heading_kind(text)
        if kind:
            current = kind
            continue
        if node.name != "li" and _is_subheading(text):
            current = "ingredients"
            sections[current].append(text)
            continue
        if node.name in HEADING_TAGS:
            if current == "ingredients" and is_likely_ingredient_heading(text):
                sections[current].append(text)
            else:
                current = None
            continue
        if current == "instructions":
            text = STEP_NUMBER_RE.sub("", text)
        if current and text:
            sections[current].append(text)

    return sections


def _list_items(lst: Tag) -> List[str]:
    items = [clean_text(li.get_text(" ", strip=True)) for li in lst.find_all("li")]
    return [item for item in items if item]


def _find_ingredient_items(container: Tag) -> List[str]:
    """Find likely ingredient items in a container element."""
    best_items: List[str] = []
    best_score = -1
    for lst in container.find_all(["ul", "ol"]):
        items = _list_items(lst)
        if len(items) < 2:
            continue
        matches = sum(1 for item in items if QUANTITY_RE.search(item))
        if matches < max(2, len(items) // 2):
            continue
        score = matches * 2 + len(items)
        if score > best_score:
            best_score = score
            best_items = items
    return best_items


def _find_instruction_items(container: Tag, exclude: List[str]) -> List[str]:
    """Pick the ordered list that reads most like cooking steps."""
    best_items: List[str] = []
    best_score = 0
    for ol in container.find_all("ol"):
        items = _list_items(ol)
        if len(items) < 2 or items == exclude:
            continue
        action_verbs = sum(1 for item in items if ACTION_VERB_RE.search(item))
        if not action_verbs:
            continue
        score = len(items) + action_verbs * 2
        if score > best_score:
            best_score = score
            best_items = items
    return best_items


def extract_recipe_heuristic(soup: BeautifulSoup) -> Optional[ScrapedRecipe]:
    """Extract a recipe from the page body; None unless both ingredients and steps are found."""
    working = copy.copy(soup)
    title_tag = working.find("h1")
    title = clean_text(title_tag.get_text(" ", strip=True)) if title_tag else None

    clean_soup_for_content(working)
    container = find_main_node(working)
    if container is None:
        return None

    sections = split_sections(container)
    ingredients = sections["ingredients"] or _find_ingredient_items(container)
    instructions = sections["instructions"] or _find_instruction_items(container, ingredients)
    if not ingredients or not instructions:
        logger.debug(
            "Heuristic extraction found ingredients=%d, instructions=%d; giving up",
            len(ingredients),
            len(instructions),
        )
        return None

    logger.info("Heuristic extraction found %d ingredients, %d steps", len(ingredients), len(instructions))
    return ScrapedRecipe(
        title=title or meta_title(soup),
        ingredients=ingredients,
        instructions=instructions,
        notes=sections["notes"],
        servings=parse_servings_from_text(container.get_text(" ", strip=True)),
        parser_strategy="heuristic",
    )
