"""HTML fetching and URL validation utilities."""

import ipaddress
import logging
import re
from urllib.parse import urlparse

import httpx

from mise_recipes.app.core.config import get_settings

logger = logging.getLogger(__name__)


class BlockedHostError(ValueError):
    """The URL points at localhost or a private network address."""


def is_private_host(host: str) -> bool:
    """Check if a host is private/localhost."""
    hostname = host.split(":")[0]
    try:
        ip = ipaddress.ip_address(hostname)
        return ip.is_private or ip.is_loopback or ip.is_link_local
    except ValueError:
        return hostname.lower() in {"localhost"} or hostname.lower().endswith(".localhost")


def validate_url(url: str) -> str:
    parsed = urlparse((url or "").strip())
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError("URL must start with http or https.")
    if is_private_host(parsed.hostname or ""):
        raise BlockedHostError("URL points to a private or disallowed host")
    return parsed.geturl()


def _decode(response: httpx.Response, max_bytes: int) -> str:
    content_bytes = response.content
    if len(content_bytes) > max_bytes:
        logger.warning("Truncating %d byte document to %d bytes", len(content_bytes), max_bytes)
        content_bytes = content_bytes[:max_bytes]

    encoding = response.charset_encoding
    if not encoding:
        match = re.search(rb'<meta[^>]+charset=["\']?([^"\'>\s]+)', content_bytes[:4096], re.I)
        encoding = match.group(1).decode("ascii", errors="ignore") if match else "utf-8"
    try:
        return content_bytes.decode(encoding, errors="replace")
    except LookupError:
        return content_bytes.decode("utf-8", errors="replace")


async def fetch_html(url: str) -> str:
    """Fetch a page once and return its HTML.

    Raises ValueError for unusable URLs or non-HTML responses and
    httpx.HTTPStatusError for non-2xx responses. No retries.
    """
    target = validate_url(url)
    settings = get_settings()
    headers = {
        "User-Agent": settings.scraper_user_agent,
        "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Cache-Control": "no-cache",
    }

    async with httpx.AsyncClient(
        timeout=settings.scraper_timeout_seconds, follow_redirects=True, headers=headers
    ) as client:
        response = await client.get(target)
    response.raise_for_status()

    content_type = response.headers.get("content-type", "")
    if content_type and "text/html" not in content_type and "application/xhtml" not in content_type:
        raise ValueError(f"Unsupported content type: {content_type}")

    html = _decode(response, settings.scraper_max_bytes)
    logger.info("Fetched %s (%d chars)", target, len(html))
    return html
