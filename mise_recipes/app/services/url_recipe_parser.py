import logging
from typing import List, Optional

import httpx

from mise_recipes.app.services.recipe_pipeline import normalize_scraped_recipe, normalize_text_recipe
from mise_recipes.app.services.url_parsing import (
    BlockedHostError,
    ParseResult,
    extract_recipe_candidate,
    fetch_html,
    validate_url,
)

logger = logging.getLogger(__name__)

BLOCKED_STATUSES = {401, 403, 429}


def _has_recipe_data(result: ParseResult) -> bool:
    return bool(result.recipe and (result.recipe.ingredients or result.recipe.instructions))


def parse_recipe_from_html(html: str, url: str, warnings: Optional[List[str]] = None) -> ParseResult:
    """Extract and normalize a recipe from an already-fetched page."""
    warnings = warnings if warnings is not None else []
    candidate = extract_recipe_candidate(html, url)
    if candidate is None:
        return ParseResult(
            success=False,
            error_code="no_recipe_data",
            error_message="No recipe data found on the page",
            warnings=warnings,
        )

    if candidate.parser_strategy == "meta_fallback":
        warnings.append("No structured recipe data; only page metadata was found.")
    elif candidate.parser_strategy == "heuristic":
        warnings.append("No structured recipe data; ingredients and steps were read from the page layout.")
    result = ParseResult(
        success=True,
        recipe=normalize_scraped_recipe(candidate, source_url=url),
        parser_strategy=candidate.parser_strategy,
        warnings=warnings,
    )
    if not _has_recipe_data(result):
        return ParseResult(
            success=False,
            recipe=result.recipe,
            parser_strategy=candidate.parser_strategy,
            error_code="no_recipe_data",
            error_message="No ingredients or instructions found on the page",
            warnings=warnings,
        )
    return result


async def parse_recipe_from_url(url: str) -> ParseResult:
    """Fetch a page once and turn it into a recipe payload; never raises for fetch errors."""
    warnings: List[str] = []
    try:
        target = validate_url(url)
    except BlockedHostError as exc:
        return ParseResult(success=False, error_code="blocked", error_message=str(exc), warnings=warnings)
    except ValueError as exc:
        return ParseResult(success=False, error_code="invalid_url", error_message=str(exc), warnings=warnings)

    try:
        html = await fetch_html(target)
    except httpx.HTTPStatusError as exc:
        status_code = exc.response.status_code
        logger.exception("Failed to fetch URL %s (status=%s)", target, status_code)
        blocked = status_code in BLOCKED_STATUSES
        return ParseResult(
            success=False,
            error_code="blocked" if blocked else "fetch_failed",
            error_message=f"status_{status_code}",
            warnings=warnings + ["blocked_by_site" if blocked else "fetch_http_error"],
        )
    except httpx.HTTPError as exc:
        logger.exception("Failed to fetch URL %s", target)
        return ParseResult(
            success=False,
            error_code="fetch_failed",
            error_message=str(exc) or exc.__class__.__name__,
            warnings=warnings + ["fetch_http_error"],
        )
    except ValueError as exc:
        logger.warning("Rejected response from %s: %s", target, exc)
        return ParseResult(success=False, error_code="fetch_failed", error_message=str(exc), warnings=warnings)

    return parse_recipe_from_html(html, target, warnings)


def parse_recipe_from_text(text: str, title: Optional[str] = None) -> ParseResult:
    recipe = normalize_text_recipe(text, title=title)
    if not recipe.ingredients and not recipe.instructions:
        return ParseResult(
            success=False,
            recipe=recipe,
            parser_strategy="ocr_text",
            error_code="no_recipe_data",
            error_message="No ingredients or instructions found in the text",
        )
    return ParseResult(success=True, recipe=recipe, parser_strategy="ocr_text")
