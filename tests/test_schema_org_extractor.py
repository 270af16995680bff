import json

import pytest
from bs4 import BeautifulSoup

from mise_recipes.app.schemas.recipe import PrepGroup
from mise_recipes.app.services.url_parsing import (
    extract_ingredient_text,
    extract_instruction_text,
    extract_recipe_candidate,
    normalize_video_url,
    parse_iso8601_duration,
    parse_minutes,
    parse_servings,
)
from mise_recipes.app.services.url_parsing.extractors.site_adapters import apply_site_adapters


def _page(*blocks, head="", body=""):
    scripts = "".join(
        f'<script type="application/ld+json">{b if isinstance(b, str) else json.dumps(b)}</script>' for b in blocks
    )
    return f"<html><head>{head}{scripts}</head><body>{body}</body></html>"


RECIPE = {
    "@context": "https://schema.org",
    "@type": "Recipe",
    "name": "Weeknight Pasta",
    "description": "Fast &amp; easy.",
    "image": [{"@type": "ImageObject", "url": "https://example.com/pasta.jpg"}],
    "recipeIngredient": ["200 g spaghetti", "2 cloves garlic, sliced"],
    "recipeInstructions": [
        {
            "@type": "HowToSection",
            "name": "Sauce",
            "itemListElement": [{"@type": "HowToStep", "text": "Fry the garlic."}],
        },
        {"@type": "HowToStep", "text": "Boil spaghetti &amp; drain."},
    ],
    "keywords": "dinner, pasta",
    "recipeYield": ["4 servings"],
    "prepTime": "PT15M",
    "cookTime": "PT1H5M",
    "video": {"@type": "VideoObject", "embedUrl": "https://www.youtube.com/embed/abc123"},
}


def test_extracts_json_ld_recipe_fields():
    candidate = extract_recipe_candidate(_page(RECIPE), "https://example.com/pasta")
    assert candidate is not None
    assert candidate.parser_strategy == "schema_org_json_ld"
    assert candidate.title == "Weeknight Pasta"
    assert candidate.description == "Fast & easy."
    assert candidate.image_url == "https://example.com/pasta.jpg"
    assert candidate.ingredients == ["200 g spaghetti", "2 cloves garlic, sliced"]
    assert candidate.instructions == ["Fry the garlic.", "Boil spaghetti & drain."]
    assert candidate.tags == ["dinner", "pasta"]
    assert candidate.servings == 4
    assert candidate.prep_time == 15
    assert candidate.cook_time == 65
    assert candidate.video_url == "https://youtu.be/abc123"


def test_recipe_nested_inside_graph_is_found():
    graph = {
        "@context": "https://schema.org",
        "@graph": [
            {"@type": "WebSite", "name": "Site"},
            {
                "@type": "WebPage",
                "about": {"@type": "Thing", "hasPart": dict(RECIPE, **{"@type": ["Recipe", "NewsArticle"]})},
            },
        ],
    }
    candidate = extract_recipe_candidate(_page(graph), "https://example.com/pasta")
    assert candidate is not None
    assert candidate.title == "Weeknight Pasta"
    assert len(candidate.ingredients) == 2


def test_malformed_block_does_not_abort_extraction():
    candidate = extract_recipe_candidate(_page('{"@type": "Recipe", "name": ', RECIPE), "https://example.com/pasta")
    assert candidate is not None
    assert candidate.title == "Weeknight Pasta"


def test_node_with_recipe_data_wins_over_name_only_node():
    stub = {"@type": "recipe", "name": "Teaser"}
    candidate = extract_recipe_candidate(_page([stub, RECIPE]), "https://example.com/pasta")
    assert candidate.title == "Weeknight Pasta"


def test_html_inside_json_ld_strings_becomes_lines():
    recipe = dict(RECIPE, recipeInstructions="<p>Mix well.</p><p>Bake <b>20</b> minutes.</p>")
    candidate = extract_recipe_candidate(_page(recipe), "https://example.com/pasta")
    assert candidate.instructions == ["Mix well.", "Bake 20 minutes."]


def test_meta_tags_fill_gaps_left_by_json_ld():
    recipe = {k: v for k, v in RECIPE.items() if k not in {"image", "description"}}
    head = (
        '<meta property="og:image" content="https://example.com/og.jpg">'
        '<meta name="description" content="From the meta tag">'
    )
    candidate = extract_recipe_candidate(_page(recipe, head=head), "https://example.com/pasta")
    assert candidate.image_url == "https://example.com/og.jpg"
    assert candidate.description == "From the meta tag"


def test_meta_fallback_without_json_ld():
    head = (
        "<title>Page Title</title>"
        '<meta property="og:title" content="Grandma&#39;s Stew">'
        '<meta name="twitter:description" content="Hearty">'
        '<meta name="twitter:image" content="https://example.com/stew.jpg">'
    )
    body = '<iframe data-src="https://www.youtube-nocookie.com/embed/XYZ"></iframe>'
    candidate = extract_recipe_candidate(_page(head=head, body=body), "https://example.com/stew")
    assert candidate.parser_strategy == "meta_fallback"
    assert candidate.title == "Grandma's Stew"
    assert candidate.description == "Hearty"
    assert candidate.image_url == "https://example.com/stew.jpg"
    assert candidate.video_url == "https://youtu.be/XYZ"
    assert candidate.ingredients == []


def test_page_without_any_recipe_signal_returns_none():
    assert extract_recipe_candidate("<html><body><p>hello</p></body></html>", "https://example.com") is None
    assert extract_recipe_candidate("", "https://example.com") is None


def test_notes_container_is_converted_to_lines():
    body = (
        '<div class="wprm-recipe-notes-container">'
        '<div class="wprm-recipe-notes"><ul><li>Use ripe tomatoes.</li><li>Freezes well.</li></ul>'
        "<p>Nutrition: 200 kcal</p></div></div>"
    )
    candidate = extract_recipe_candidate(_page(RECIPE, body=body), "https://example.com/pasta")
    assert candidate.notes == ["Use ripe tomatoes.", "Freezes well."]


def test_notes_heading_section_stops_at_next_heading():
    body = (
        "<h2>Recipe Notes</h2><p>Swap butter for oil.<br>Keeps 3 days.</p><p>Nutrition facts here</p>"
        "<h2>Comments</h2><p>Great!</p>"
    )
    candidate = extract_recipe_candidate(_page(RECIPE, body=body), "https://example.com/pasta")
    assert candidate.notes == ["Swap butter for oil.", "Keeps 3 days."]


def test_wprm_ingredient_groups_become_source_groups():
    body = (
        '<div class="wprm-recipe-ingredient-group"><h4 class="wprm-recipe-group-name">For the sauce:</h4>'
        '<ul><li class="wprm-recipe-ingredient">1 cup tomatoes</li>'
        '<li class="wprm-recipe-ingredient">2 cloves garlic</li></ul></div>'
    )
    candidate = extract_recipe_candidate(_page(RECIPE, body=body), "https://example.com/pasta")
    assert candidate.ingredient_groups == [
        PrepGroup(title="For the sauce", items=["1 cup tomatoes", "2 cloves garlic"], source_group=True)
    ]


def test_untitled_wprm_group_is_returned_with_empty_title():
    body = (
        '<div class="wprm-recipe-ingredient-group">'
        '<ul><li class="wprm-recipe-ingredient">200 g spaghetti</li></ul></div>'
        '<div class="wprm-recipe-ingredient-group"><h4 class="wprm-recipe-group-name">For the sauce:</h4>'
        '<ul><li class="wprm-recipe-ingredient">1 cup tomatoes</li></ul></div>'
    )
    candidate = extract_recipe_candidate(_page(RECIPE, body=body), "https://example.com/pasta")
    assert [(g.title, g.items) for g in candidate.ingredient_groups] == [
        ("", ["200 g spaghetti"]),
        ("For the sauce", ["1 cup tomatoes"]),
    ]


def test_site_adapters():
    card = '<div class="wprm-recipe-container"><p>Card</p></div>'
    html = f"<html><body>{card}{card}<noscript><img src='x.jpg'></noscript></body></html>"

    soup = BeautifulSoup(html, "lxml")
    assert apply_site_adapters(soup, "https://www.allrecipes.com/recipe/1") == ["wprm-dedupe", "noscript-strip"]
    assert len(soup.select("div.wprm-recipe-container")) == 1
    assert soup.find("noscript") is None

    soup = BeautifulSoup(html, "lxml")
    assert apply_site_adapters(soup, "https://example.com/recipe") == ["noscript-strip"]
    assert len(soup.select("div.wprm-recipe-container")) == 2


def test_instruction_and_ingredient_value_shapes():
    assert extract_instruction_text("Mix.\nBake.") == ["Mix.", "Bake."]
    assert extract_instruction_text({"@type": "HowToStep", "name": "Rest the dough"}) == ["Rest the dough"]
    assert extract_instruction_text({"steps": [{"text": "Chill."}]}) == ["Chill."]
    assert extract_instruction_text(42) == []
    assert extract_ingredient_text({"@type": "PropertyValue", "name": "flour", "value": "2 cups"}) == ["2 cups flour"]
    assert extract_ingredient_text([{"name": "milk", "value": "250", "unitText": "ml"}]) == ["250 ml milk"]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("PT1H30M", 90),
        ("PT45M", 45),
        ("pt2h", 120),
        ("PT0M", None),
        ("garbage", None),
        ("", None),
    ],
)
def test_parse_iso8601_duration(value, expected):
    assert parse_iso8601_duration(value) == expected


def test_parse_minutes_and_servings():
    assert parse_minutes(20) == 20
    assert parse_minutes("25 minutes") == 25
    assert parse_minutes(None) is None
    assert parse_servings("Serves 6") == 6
    assert parse_servings(["", "8 pieces"]) == 8
    assert parse_servings("a few") is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("https://www.youtube.com/watch?v=abc&t=5", "https://youtu.be/abc"),
        ("https://youtube.com/shorts/def", "https://youtu.be/def"),
        ("https://player.vimeo.com/video/12345", "https://vimeo.com/12345"),
        ("//youtu.be/xyz", "https://youtu.be/xyz"),
        ("https://cdn.example.com/clip.mp4", "https://cdn.example.com/clip.mp4"),
        ("ftp://example.com/clip", None),
    ],
)
def test_normalize_video_url(value, expected):
    assert normalize_video_url(value) == expected
