"""Schema.org JSON-LD recipe extraction."""

import json
import logging
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from mise_recipes.app.services.url_parsing.models import ScrapedRecipe
from mise_recipes.app.services.url_parsing.parsing_utils import (
    clean_text,
    coerce_keywords,
    extract_image,
    extract_ingredient_text,
    extract_instruction_text,
    extract_video_url,
    normalize_video_url,
    parse_minutes,
    parse_servings,
)

logger = logging.getLogger(__name__)


def parse_json_ld_blocks(soup: BeautifulSoup) -> List[Any]:
    """Parse every JSON-LD block on its own; malformed blocks are skipped."""
    scripts = soup.find_all("script", attrs={"type": lambda value: value and value.strip().lower() == "application/ld+json"})
    logger.info("Found %d JSON-LD script blocks", len(scripts))

    blocks = []
    for idx, script in enumerate(scripts):
        raw_json = (script.string or script.get_text() or "").strip()
        if not raw_json:
            logger.debug("JSON-LD block %d is empty", idx)
            continue
        try:
            blocks.append(json.loads(raw_json))
        except json.JSONDecodeError as exc:
            logger.warning(
                "JSON-LD block %d failed to parse: %s (first 200 chars: %s)",
                idx,
                exc,
                raw_json[:200],
            )
    return blocks


def is_recipe_type(value) -> bool:
    if isinstance(value, str):
        return value.lower() == "recipe"
    if isinstance(value, list):
        return any(isinstance(entry, str) and entry.lower() == "recipe" for entry in value)
    return False


def collect_recipe_nodes(node, results: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Depth-first walk collecting every Recipe-typed object, @graph included."""
    if isinstance(node, list):
        for entry in node:
            collect_recipe_nodes(entry, results)
    elif isinstance(node, dict):
        if is_recipe_type(node.get("@type")):
            results.append(node)
        for value in node.values():
            if isinstance(value, (dict, list)):
                collect_recipe_nodes(value, results)
    return results


def _has_recipe_data(node: Dict[str, Any]) -> bool:
    return bool(node.get("recipeIngredient") or node.get("ingredients") or node.get("recipeInstructions"))


def select_recipe_node(nodes: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    for node in nodes:
        if _has_recipe_data(node):
            return node
    for node in nodes:
        if node.get("name") or node.get("headline"):
            return node
    return None


def recipe_from_node(node: Dict[str, Any]) -> ScrapedRecipe:
    title = None
    for key in ("name", "headline"):
        if isinstance(node.get(key), str) and clean_text(node[key]):
            title = clean_text(node[key])
            break
    description = clean_text(node["description"]) if isinstance(node.get("description"), str) else ""

    ingredients = extract_ingredient_text(node.get("recipeIngredient") or node.get("ingredients"))
    instructions = extract_instruction_text(node.get("recipeInstructions"))
    logger.info(
        "Recipe node: title=%s, ingredients=%d, steps=%d",
        title[:50] if title else "None",
        len(ingredients),
        len(instructions),
    )

    return ScrapedRecipe(
        title=title,
        description=description or None,
        image_url=extract_image(node.get("image")),
        video_url=normalize_video_url(extract_video_url(node.get("video") or node.get("videoUrl"))),
        ingredients=ingredients,
        instructions=instructions,
        tags=coerce_keywords(node.get("keywords")),
        servings=parse_servings(node.get("recipeYield")),
        prep_time=parse_minutes(node.get("prepTime")),
        cook_time=parse_minutes(node.get("cookTime")),
        parser_strategy="schema_org_json_ld",
    )


def extract_recipe_from_schema_org(soup: BeautifulSoup) -> Optional[ScrapedRecipe]:
    """Extract recipe from schema.org JSON-LD data embedded in HTML."""
    nodes: List[Dict[str, Any]] = []
    for block in parse_json_ld_blocks(soup):
        collect_recipe_nodes(block, nodes)
    logger.info("Found %d Recipe nodes", len(nodes))

    node = select_recipe_node(nodes)
    if node is None:
        return None
    return recipe_from_node(node)
