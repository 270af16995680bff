"""General parsing utilities for recipe extraction."""

import re
from typing import List, Optional, Sequence
from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup, Tag

from mise_recipes.app.services.line_normalizer import normalize_text, parse_tags

BLOCK_TAGS = ["p", "li", "div", "tr", "ul", "ol", "section", "h1", "h2", "h3", "h4", "h5", "h6"]

_VIDEO_HOST_RE = re.compile(r"youtube\.com|youtu\.be|youtube-nocookie\.com|vimeo\.com", re.I)


def clean_text(text: Optional[str]) -> str:
    """Decode entities and normalize whitespace in text."""
    return normalize_text(text)


def looks_like_html(text: str) -> bool:
    return "<" in text and ">" in text


def html_to_lines(node: Tag) -> List[str]:
    """Flatten an element to text lines, one per block element or <br>."""
    for br in node.find_all("br"):
        br.replace_with("\n")
    for block in node.find_all(BLOCK_TAGS):
        if block.parent is not None:
            block.insert_after("\n")
    lines = []
    for raw in node.get_text().split("\n"):
        line = clean_text(raw)
        if line:
            lines.append(line)
    return lines


def text_lines(value: str) -> List[str]:
    """Split a JSON-LD string value into clean lines, reducing embedded HTML to text."""
    if looks_like_html(value):
        soup = BeautifulSoup(value, "lxml")
        return html_to_lines(soup.body or soup)
    lines = []
    for raw in value.splitlines():
        line = clean_text(raw)
        if line:
            lines.append(line)
    return lines


def parse_iso8601_duration(duration: str) -> Optional[int]:
    """Parse an ISO-8601 duration string (e.g., PT1H30M) into whole minutes."""
    if not duration:
        return None
    match = re.search(r"P(?:(\d+)D)?T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?", duration, flags=re.I)
    if not match:
        return None
    days = int(match.group(1) or 0)
    hours = int(match.group(2) or 0)
    minutes = int(match.group(3) or 0)
    seconds = int(match.group(4) or 0)
    total_minutes = days * 1440 + hours * 60 + minutes + (1 if seconds >= 30 else 0)
    return total_minutes or None


def parse_minutes(value) -> Optional[int]:
    """Parse a minutes value from various formats."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if value > 0 else None
    if isinstance(value, str):
        iso_minutes = parse_iso8601_duration(value)
        if iso_minutes is not None:
            return iso_minutes
        match = re.search(r"(\d+)\s*(min|minute|minutes)\b", value, flags=re.I)
        if match:
            return int(match.group(1))
    return None


def parse_servings(value) -> Optional[int]:
    """Parse servings from various formats; the first digit run of a string wins."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, list):
        for entry in value:
            parsed = parse_servings(entry)
            if parsed and parsed > 0:
                return parsed
        return None
    if isinstance(value, str):
        match = re.search(r"\d+", value)
        if match:
            return int(match.group())
    return None


def parse_servings_from_text(text: str) -> Optional[int]:
    """Extract servings from descriptive text."""
    if not text:
        return None
    patterns = [
        r"serves\s+(\d+)",
        r"serve[s]?:\s*(\d+)",
        r"yield[s]?:?\s*(\d+)",
        r"servings?:?\s*(\d+)",
    ]
    for pat in patterns:
        m = re.search(pat, text, flags=re.I)
        if m:
            return int(m.group(1))
    return None


def to_http_url(value) -> Optional[str]:
    """Return `value` as an absolute http(s) URL, or None."""
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if candidate.startswith("//"):
        candidate = f"https:{candidate}"
    parsed = urlparse(candidate)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return None
    return candidate


def extract_image(value) -> Optional[str]:
    """Extract image URL from string, list or ImageObject forms."""
    if not value:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, list):
        for item in value:
            found = extract_image(item)
            if found:
                return found
        return None
    if isinstance(value, dict):
        return extract_image(value.get("url") or value.get("contentUrl"))
    return None


def normalize_video_url(value: Optional[str]) -> Optional[str]:
    """Canonicalize YouTube and Vimeo links; other URLs pass through."""
    url = to_http_url(value)
    if not url:
        return None
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    segments = [segment for segment in parsed.path.split("/") if segment]

    if host == "youtu.be":
        return f"https://youtu.be/{segments[0]}" if segments else url
    if host.endswith("youtube.com") or host.endswith("youtube-nocookie.com"):
        if parsed.path == "/watch":
            video_id = parse_qs(parsed.query).get("v", [None])[0]
            return f"https://youtu.be/{video_id}" if video_id else url
        if len(segments) >= 2 and segments[0] in {"embed", "shorts"}:
            return f"https://youtu.be/{segments[1]}"
    if host == "vimeo.com" or host.endswith(".vimeo.com"):
        match = re.search(r"(\d+)", parsed.path)
        return f"https://vimeo.com/{match.group(1)}" if match else url
    return url


def video_kind(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    if re.search(r"youtu\.be|youtube(-nocookie)?\.com", value, re.I):
        return "youtube"
    if re.search(r"vimeo\.com", value, re.I):
        return "vimeo"
    return None


def extract_video_url(value) -> Optional[str]:
    """Extract a video URL from a VideoObject, a string or a list of either."""
    if not value:
        return None
    if isinstance(value, str):
        return to_http_url(value)
    if isinstance(value, list):
        for entry in value:
            found = extract_video_url(entry)
            if found:
                return found
        return None
    if isinstance(value, dict):
        return extract_video_url(
            value.get("embedUrl") or value.get("contentUrl") or value.get("url") or value.get("@id")
        )
    return None


def is_video_host(url: str) -> bool:
    return bool(_VIDEO_HOST_RE.search(url))


def extract_instruction_text(instructions) -> List[str]:
    """Flatten string, list, HowToStep and HowToSection instructions to step text."""
    if not instructions:
        return []
    if isinstance(instructions, str):
        return text_lines(instructions)
    if isinstance(instructions, list):
        steps: List[str] = []
        for entry in instructions:
            steps.extend(extract_instruction_text(entry))
        return steps
    if not isinstance(instructions, dict):
        return []

    name = instructions.get("name")
    text = instructions.get("text")
    if isinstance(name, str) and not isinstance(text, str):
        nested = (
            instructions.get("itemListElement")
            or instructions.get("recipeInstructions")
            or instructions.get("steps")
        )
        sections = extract_instruction_text(nested)
        return sections or text_lines(name)
    if isinstance(text, str):
        return text_lines(text)
    for key in ("recipeInstructions", "itemListElement", "steps"):
        if instructions.get(key):
            return extract_instruction_text(instructions[key])
    return []


def extract_ingredient_text(ingredients) -> List[str]:
    """Flatten recipeIngredient values (strings, lists, PropertyValue objects) to lines."""
    if not ingredients:
        return []
    if isinstance(ingredients, str):
        return text_lines(ingredients)
    if isinstance(ingredients, list):
        lines: List[str] = []
        for entry in ingredients:
            lines.extend(extract_ingredient_text(entry))
        return lines
    if not isinstance(ingredients, dict):
        return []

    name = ingredients.get("name")
    value = ingredients.get("value")
    unit_text = ingredients.get("unitText")
    if isinstance(name, str) and isinstance(unit_text, str):
        amount = clean_text(value) if isinstance(value, str) else ""
        combined = " ".join(part for part in (amount, clean_text(unit_text), clean_text(name)) if part)
        return [combined] if combined else []
    if isinstance(name, str) and isinstance(value, str):
        quantity, label = clean_text(value), clean_text(name)
        return [f"{quantity} {label}"] if quantity and label else []
    for key in ("recipeIngredient", "ingredients", "itemListElement"):
        if ingredients.get(key):
            return extract_ingredient_text(ingredients[key])
    if isinstance(ingredients.get("text"), str):
        return text_lines(ingredients["text"])
    return []


def coerce_keywords(value) -> List[str]:
    """Turn schema.org keywords (comma string or list) into de-duplicated tags."""
    if not value:
        return []

    raw_tags: List[str] = []
    if isinstance(value, str):
        raw_tags = parse_tags(clean_text(value))
    elif isinstance(value, Sequence):
        for item in value:
            if isinstance(item, str):
                raw_tags.extend(parse_tags(clean_text(item)))

    seen = set()
    unique_tags = []
    for tag in raw_tags:
        tag_lower = tag.lower()
        if tag_lower not in seen:
            seen.add(tag_lower)
            unique_tags.append(tag)
    return unique_tags
