"""Meta-tag fallbacks for title, description, image and video."""

import logging
from typing import List, Optional

from bs4 import BeautifulSoup

from mise_recipes.app.services.url_parsing.models import ScrapedRecipe
from mise_recipes.app.services.url_parsing.parsing_utils import (
    clean_text,
    is_video_host,
    normalize_video_url,
    to_http_url,
    video_kind,
)

logger = logging.getLogger(__name__)

EMBED_SRC_ATTRS = ("data-cmp-src", "data-src", "data-lazy-src", "data-yt-src", "src")


def meta_content(soup: BeautifulSoup, key: str, attribute: str = "property") -> Optional[str]:
    tag = soup.find("meta", attrs={attribute: lambda value: value is not None and value.lower() == key})
    if tag is None:
        return None
    return clean_text(tag.get("content")) or None


def page_title(soup: BeautifulSoup) -> Optional[str]:
    if soup.title is None:
        return None
    return clean_text(soup.title.get_text()) or None


def meta_title(soup: BeautifulSoup) -> Optional[str]:
    return meta_content(soup, "og:title") or meta_content(soup, "twitter:title", "name") or page_title(soup)


def meta_description(soup: BeautifulSoup) -> Optional[str]:
    return (
        meta_content(soup, "description", "name")
        or meta_content(soup, "og:description")
        or meta_content(soup, "twitter:description", "name")
    )


def meta_image(soup: BeautifulSoup) -> Optional[str]:
    return to_http_url(meta_content(soup, "og:image") or meta_content(soup, "twitter:image", "name"))


def extract_video_from_html(soup: BeautifulSoup) -> Optional[str]:
    """Best YouTube (then Vimeo) link found in meta tags, embeds or anchors."""
    candidates: List[str] = []
    meta_url = to_http_url(
        meta_content(soup, "og:video:secure_url")
        or meta_content(soup, "og:video:url")
        or meta_content(soup, "og:video")
        or meta_content(soup, "twitter:player", "name")
    )
    if meta_url:
        candidates.append(meta_url)

    for embed in soup.find_all(["iframe", "video"]):
        for attr in EMBED_SRC_ATTRS:
            raw = embed.get(attr)
            if isinstance(raw, str) and is_video_host(raw):
                url = to_http_url(raw)
                if url:
                    candidates.append(url)
                break

    for anchor in soup.find_all("a", href=True):
        url = to_http_url(anchor["href"])
        if url and video_kind(url):
            candidates.append(url)
            break

    normalized = [url for url in (normalize_video_url(candidate) for candidate in candidates) if url]
    for kind in ("youtube", "vimeo"):
        for url in normalized:
            if video_kind(url) == kind:
                return url
    return None


def extract_recipe_from_meta(soup: BeautifulSoup) -> Optional[ScrapedRecipe]:
    """Candidate built from page metadata alone; None when the page has none."""
    candidate = ScrapedRecipe(
        title=meta_title(soup),
        description=meta_description(soup),
        image_url=meta_image(soup),
        video_url=extract_video_from_html(soup),
        parser_strategy="meta_fallback",
    )
    if not candidate.has_content():
        logger.info("No usable meta tags found")
        return None
    return candidate
