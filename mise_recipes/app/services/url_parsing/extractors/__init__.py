"""Recipe extractors for different parsing strategies."""

import logging
from typing import Optional

from bs4 import BeautifulSoup

from mise_recipes.app.services.url_parsing.extractors.heuristic import extract_recipe_heuristic
from mise_recipes.app.services.url_parsing.extractors.meta import (
    extract_recipe_from_meta,
    extract_video_from_html,
    meta_description,
    meta_image,
    meta_title,
)
from mise_recipes.app.services.url_parsing.extractors.notes import extract_notes_section
from mise_recipes.app.services.url_parsing.extractors.schema_org import extract_recipe_from_schema_org
from mise_recipes.app.services.url_parsing.extractors.site_adapters import apply_site_adapters
from mise_recipes.app.services.url_parsing.extractors.source_groups import extract_source_groups
from mise_recipes.app.services.url_parsing.models import ScrapedRecipe

logger = logging.getLogger(__name__)


def extract_recipe_candidate(html: str, url: str) -> Optional[ScrapedRecipe]:
    """Pull a candidate recipe out of a page.

    JSON-LD wins, then the page body read heuristically; page metadata fills
    whatever they left empty, or stands in for both. Returns None when no
    source yields anything.
    """
    if not html:
        return None
    soup = BeautifulSoup(html, "lxml")
    apply_site_adapters(soup, url)

    candidate = extract_recipe_from_schema_org(soup)
    if candidate is None:
        logger.info("No JSON-LD recipe on %s, trying page structure", url)
        candidate = extract_recipe_heuristic(soup)
    if candidate is None:
        logger.info("No recipe structure on %s, falling back to meta tags", url)
        candidate = extract_recipe_from_meta(soup)
        if candidate is None:
            return None
    else:
        candidate.title = candidate.title or meta_title(soup)
        candidate.description = candidate.description or meta_description(soup)
        candidate.image_url = candidate.image_url or meta_image(soup)
        candidate.video_url = candidate.video_url or extract_video_from_html(soup)

    candidate.ingredient_groups = extract_source_groups(soup)
    candidate.notes = extract_notes_section(soup) or candidate.notes
    return candidate


__all__ = [
    "extract_recipe_candidate",
    "extract_recipe_from_meta",
    "extract_recipe_from_schema_org",
    "extract_recipe_heuristic",
]
