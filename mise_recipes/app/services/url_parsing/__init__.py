"""URL recipe parsing package.

This package turns a fetched recipe page into a candidate recipe using
schema.org JSON-LD first and page metadata as the fallback.
"""

from mise_recipes.app.services.url_parsing.extractors import extract_recipe_candidate
from mise_recipes.app.services.url_parsing.html_fetcher import (
    BlockedHostError,
    fetch_html,
    is_private_host,
    validate_url,
)
from mise_recipes.app.services.url_parsing.models import ParseResult, ScrapedRecipe
from mise_recipes.app.services.url_parsing.parsing_utils import (
    clean_text,
    coerce_keywords,
    extract_image,
    extract_ingredient_text,
    extract_instruction_text,
    normalize_video_url,
    parse_iso8601_duration,
    parse_minutes,
    parse_servings,
    parse_servings_from_text,
)

__all__ = [
    # Models
    "ParseResult",
    "ScrapedRecipe",
    # HTML fetching
    "BlockedHostError",
    "fetch_html",
    "is_private_host",
    "validate_url",
    # Extraction
    "extract_recipe_candidate",
    # Parsing utilities
    "clean_text",
    "coerce_keywords",
    "extract_image",
    "extract_ingredient_text",
    "extract_instruction_text",
    "normalize_video_url",
    "parse_iso8601_duration",
    "parse_minutes",
    "parse_servings",
    "parse_servings_from_text",
]
