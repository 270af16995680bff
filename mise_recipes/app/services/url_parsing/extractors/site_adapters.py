"""Per-site markup clean-up applied before extraction."""

import logging
import re
from typing import Callable, List, NamedTuple, Pattern
from urllib.parse import urlparse

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


def strip_noscript_blocks(soup: BeautifulSoup) -> bool:
    blocks = soup.find_all("noscript")
    for block in blocks:
        block.decompose()
    return bool(blocks)


def remove_duplicate_wprm_blocks(soup: BeautifulSoup) -> bool:
    """Drop WP Recipe Maker cards that repeat an earlier card verbatim."""
    seen = set()
    removed = False
    for container in soup.select("div.wprm-recipe-container"):
        if container.decomposed:
            continue
        markup = str(container)
        if markup in seen:
            container.decompose()
            removed = True
        else:
            seen.add(markup)
    return removed


class SiteAdapter(NamedTuple):
    id: str
    host_pattern: Pattern[str]
    run: Callable[[BeautifulSoup], bool]


ADAPTERS = [
    SiteAdapter(
        "wprm-dedupe",
        re.compile(r"(^|\.)(allrecipes|foodnetwork|pinchofyum)\.com$", re.I),
        remove_duplicate_wprm_blocks,
    ),
    SiteAdapter("noscript-strip", re.compile(r"."), strip_noscript_blocks),
]


def apply_site_adapters(soup: BeautifulSoup, url: str) -> List[str]:
    """Mutate `soup` in place; returns the ids of adapters that changed it."""
    hostname = (urlparse(url or "").hostname or "").lower()
    if hostname.startswith("www."):
        hostname = hostname[4:]
    if not hostname:
        return []

    applied = []
    for adapter in ADAPTERS:
        if adapter.host_pattern.search(hostname) and adapter.run(soup):
            applied.append(adapter.id)
    if applied:
        logger.debug("Applied site adapters for %s: %s", hostname, ", ".join(applied))
    return applied
