import json

import pytest

from mise_recipes.app.services import url_recipe_parser


def _create(client, **overrides):
    payload = {
        "title": "Egg Batter",
        "tags": ["breakfast", " Breakfast ", "quick"],
        "ingredients": "2 cups flour\n1 egg\nSee note 1",
        "instructions": ["Whisk the egg.", "Add flour and mix."],
    }
    payload.update(overrides)
    response = client.post("/recipes", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _groups(body):
    return [(g["title"], g["items"], g.get("stepIndex")) for g in body["prep_groups"]]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_normalizes_and_groups(client):
    body = _create(client)
    assert body["id"] > 0
    assert body["tags"] == ["breakfast", "quick"]
    assert body["ingredients"] == ["2 cups flour", "1 egg"]
    assert body["notes"] == ["See note 1"]
    assert _groups(body) == [("Step 1", ["1 egg"], 0), ("Step 2", ["2 cups flour"], 1)]
    assert body["prep_groups"][0]["sourceGroup"] is False


def test_create_keeps_explicit_prep_groups(client):
    body = _create(client, prep_groups=[{"title": "Batter", "items": ["2 cups flour", "1 egg"], "sourceGroup": True}])
    assert [(g["title"], g["items"], g["sourceGroup"]) for g in body["prep_groups"]] == [
        ("Batter", ["2 cups flour", "1 egg"], True)
    ]


def test_create_without_instructions_uses_lexical_groups(client):
    body = _create(client, ingredients=["1 lb chicken thighs", "2 cups chicken stock", "1 onion"], instructions=[])
    assert [(g["title"], g["items"]) for g in body["prep_groups"]] == [
        ("Chicken", ["1 lb chicken thighs", "2 cups chicken stock"]),
        ("Prep", ["1 onion"]),
    ]


def test_list_and_get(client):
    first = _create(client, title="First")
    second = _create(client, title="Second")

    listed = client.get("/recipes").json()
    assert [r["id"] for r in listed] == [second["id"], first["id"]]

    fetched = client.get(f"/recipes/{first['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["title"] == "First"


def test_get_missing_recipe_returns_404(client):
    response = client.get("/recipes/9999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Recipe not found"


def test_edit_instructions_recomputes_groups(client):
    created = _create(client)

    response = client.patch(
        f"/recipes/{created['id']}",
        json={"instructions": ["Sift the flour.", "Beat in the egg."], "servings": 2},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["servings"] == 2
    assert body["title"] == "Egg Batter"
    assert _groups(body) == [("Step 1", ["2 cups flour"], 0), ("Step 2", ["1 egg"], 1)]


def test_notes_only_edit_keeps_groups(client):
    created = _create(client)
    client.put(f"/recipes/{created['id']}/prep-groups", json={"text": "Everything\n- 2 cups flour\n- 1 egg"})

    response = client.patch(f"/recipes/{created['id']}", json={"notes": "Chill overnight."})

    body = response.json()
    assert body["notes"] == ["Chill overnight."]
    assert [(g["title"], g["items"]) for g in body["prep_groups"]] == [("Everything", ["2 cups flour", "1 egg"])]


def test_set_prep_groups_from_text(client):
    created = _create(client)

    response = client.put(
        f"/recipes/{created['id']}/prep-groups",
        json={"text": "Dry\n- 2 cups flour\n\nWet\n* 1 egg\n"},
    )

    assert response.status_code == 200
    assert [(g["title"], g["items"]) for g in response.json()["prep_groups"]] == [
        ("Dry", ["2 cups flour"]),
        ("Wet", ["1 egg"]),
    ]


def test_set_prep_groups_rejects_empty_text(client):
    created = _create(client)
    response = client.put(f"/recipes/{created['id']}/prep-groups", json={"text": "   \n"})
    assert response.status_code == 400


def test_highlighted_instructions(client):
    created = _create(client)

    response = client.get(f"/recipes/{created['id']}/instructions")

    assert response.status_code == 200
    steps = response.json()
    assert [s["step_index"] for s in steps] == [0, 1]
    assert [(span["text"], span["group_index"]) for span in steps[0]["spans"]] == [
        ("Whisk the ", None),
        ("egg", 0),
        (".", None),
    ]
    assert ("flour", 1) in [(span["text"], span["group_index"]) for span in steps[1]["spans"]]


def test_delete_recipe(client):
    created = _create(client)

    assert client.delete(f"/recipes/{created['id']}").status_code == 204
    assert client.get(f"/recipes/{created['id']}").status_code == 404
    assert client.delete(f"/recipes/{created['id']}").status_code == 404


def test_import_url_and_save(monkeypatch, client):
    recipe = {
        "@type": "Recipe",
        "name": "Imported Eggs",
        "recipeIngredient": ["2 eggs", "1 tbsp butter"],
        "recipeInstructions": ["Melt the butter.", "Scramble the eggs."],
    }
    html = f'<html><head><script type="application/ld+json">{json.dumps(recipe)}</script></head></html>'

    async def fake_fetch(url: str):
        return html

    monkeypatch.setattr(url_recipe_parser, "fetch_html", fake_fetch)

    response = client.post("/recipes/import/url", json={"url": " https://example.com/eggs ", "save": True})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["parser_strategy"] == "schema_org_json_ld"
    assert body["recipe"]["prep_groups"][0] == {
        "title": "Step 1",
        "items": ["1 tbsp butter"],
        "stepIndex": 0,
        "sourceGroup": False,
    }

    saved = client.get(f"/recipes/{body['created_recipe_id']}").json()
    assert saved["title"] == "Imported Eggs"
    assert saved["source_url"] == "https://example.com/eggs"
    assert _groups(saved) == [("Step 1", ["1 tbsp butter"], 0), ("Step 2", ["2 eggs"], 1)]


def test_import_url_preview_does_not_save(monkeypatch, client):
    async def fake_fetch(url: str):
        return '<html><head><script type="application/ld+json">{"@type": "Recipe", "name": "X", "recipeIngredient": ["1 egg"]}</script></head></html>'

    monkeypatch.setattr(url_recipe_parser, "fetch_html", fake_fetch)

    body = client.post("/recipes/import/url", json={"url": "https://example.com/x"}).json()

    assert body["success"] is True
    assert body["created_recipe_id"] is None
    assert client.get("/recipes").json() == []


@pytest.mark.parametrize(
    "url, error_code",
    [("http://localhost/recipe", "blocked"), ("ftp://example.com/recipe", "invalid_url")],
)
def test_import_url_failure_creates_nothing(client, url, error_code):
    response = client.post("/recipes/import/url", json={"url": url, "save": True})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == error_code
    assert body["recipe"] is None
    assert body["created_recipe_id"] is None
    assert client.get("/recipes").json() == []


def test_import_text_and_save(client):
    text = "Garlic Toast\nIngredients\n2 slices bread\n1 clove garlic\nDirections\nToast the bread.\nRub garlic over the toast."

    response = client.post("/recipes/import/text", json={"text": text, "save": True})

    body = response.json()
    assert body["success"] is True
    assert body["parser_strategy"] == "ocr_text"
    assert body["recipe"]["title"] == "Garlic Toast"
    saved = client.get(f"/recipes/{body['created_recipe_id']}").json()
    assert saved["ingredients"] == ["2 slices bread", "1 clove garlic"]
    assert _groups(saved) == [("Step 1", ["2 slices bread"], 0), ("Step 2", ["1 clove garlic"], 1)]


def test_import_text_without_sections_fails(client):
    body = client.post("/recipes/import/text", json={"text": "just some words"}).json()
    assert body["success"] is False
    assert body["error_code"] == "no_recipe_data"
