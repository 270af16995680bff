import logging
from typing import List

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from mise_recipes.app.db import models
from mise_recipes.app.schemas.recipe import InstructionHighlight, PrepGroup, RecipeCreate, RecipeUpdate
from mise_recipes.app.services.highlighter import highlight_instructions
from mise_recipes.app.services.prep_groups import coerce_prep_groups, dump_prep_groups, parse_prep_groups_from_text
from mise_recipes.app.services.recipe_pipeline import prepare_recipe_fields

logger = logging.getLogger(__name__)

SCALAR_FIELDS = (
    "title",
    "description",
    "source_url",
    "image_url",
    "video_url",
    "servings",
    "prep_time_minutes",
    "cook_time_minutes",
)


def _clean_tags(tags: List[str]) -> List[str]:
    cleaned: List[str] = []
    seen = set()
    for tag in tags:
        normalized = tag.strip()
        if normalized and normalized.lower() not in seen:
            seen.add(normalized.lower())
            cleaned.append(normalized)
    return cleaned


def create_recipe(db: Session, data: RecipeCreate) -> models.Recipe:
    fields = prepare_recipe_fields(data.ingredients, data.instructions, data.notes, prep_groups=data.prep_groups)
    recipe = models.Recipe(
        **{field: getattr(data, field) for field in SCALAR_FIELDS},
        tags=_clean_tags(data.tags),
        **fields,
    )
    db.add(recipe)
    db.commit()
    db.refresh(recipe)
    logger.info("Created recipe %s with %d prep groups", recipe.id, len(recipe.prep_groups))
    return recipe


def list_recipes(db: Session) -> List[models.Recipe]:
    stmt = select(models.Recipe).order_by(models.Recipe.created_at.desc(), models.Recipe.id.desc())
    return list(db.scalars(stmt).all())


def get_recipe(db: Session, recipe_id: int) -> models.Recipe:
    recipe = db.get(models.Recipe, recipe_id)
    if not recipe:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not found")
    return recipe


def update_recipe(db: Session, recipe_id: int, data: RecipeUpdate) -> models.Recipe:
    """Apply an edit; prep groups are rebuilt whenever ingredients or instructions change."""
    recipe = get_recipe(db, recipe_id)

    for field in SCALAR_FIELDS:
        value = getattr(data, field)
        if value is not None:
            setattr(recipe, field, value)
    if data.tags is not None:
        recipe.tags = _clean_tags(data.tags)

    if data.ingredients is not None or data.instructions is not None or data.notes is not None:
        fields = prepare_recipe_fields(
            data.ingredients if data.ingredients is not None else recipe.ingredients or [],
            data.instructions if data.instructions is not None else recipe.instructions or [],
            data.notes if data.notes is not None else recipe.notes or [],
        )
        if data.ingredients is None and data.instructions is None:
            # Notes-only edit keeps whatever groups the record already has.
            fields.pop("prep_groups")
        for field, value in fields.items():
            setattr(recipe, field, value)

    db.commit()
    db.refresh(recipe)
    return recipe


def delete_recipe(db: Session, recipe_id: int) -> None:
    recipe = get_recipe(db, recipe_id)
    db.delete(recipe)
    db.commit()


def set_prep_groups_from_text(db: Session, recipe_id: int, text: str) -> models.Recipe:
    """Replace a record's prep groups with a hand-edited text form."""
    recipe = get_recipe(db, recipe_id)
    groups = parse_prep_groups_from_text(text)
    if not groups:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No prep groups found in text")
    recipe.prep_groups = dump_prep_groups(groups)
    db.commit()
    db.refresh(recipe)
    return recipe


def get_prep_groups(recipe: models.Recipe) -> List[PrepGroup]:
    return coerce_prep_groups(recipe.prep_groups)


def get_highlighted_instructions(db: Session, recipe_id: int) -> List[InstructionHighlight]:
    recipe = get_recipe(db, recipe_id)
    return highlight_instructions(get_prep_groups(recipe), recipe.instructions or [])
