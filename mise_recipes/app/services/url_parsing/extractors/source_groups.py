"""Ingredient sections declared by recipe-card markup (WP Recipe Maker)."""

from typing import List

from bs4 import BeautifulSoup

from mise_recipes.app.schemas.recipe import PrepGroup
from mise_recipes.app.services.prep_groups import normalize_group_title
from mise_recipes.app.services.url_parsing.parsing_utils import clean_text


def extract_source_groups(soup: BeautifulSoup) -> List[PrepGroup]:
    """Every ingredient group in the card, in page order.

    The plugin's first group is often untitled; it is returned with an empty
    title so the caller can file its items under the remainder group.
    """
    groups: List[PrepGroup] = []
    for container in soup.select("div.wprm-recipe-ingredient-group"):
        name_node = container.select_one(".wprm-recipe-group-name")
        title = normalize_group_title(name_node.get_text(" ", strip=True)) if name_node else ""
        items = []
        for li in container.select("li.wprm-recipe-ingredient"):
            text = clean_text(li.get_text(" ", strip=True))
            if text:
                items.append(text)
        if items:
            groups.append(PrepGroup(title=title, items=items, source_group=True))
    return groups
