from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from mise_recipes.app.api.deps import get_db_session
from mise_recipes.app.schemas.recipe import (
    InstructionHighlight,
    PrepGroupsText,
    RecipeCreate,
    RecipeRead,
    RecipeUpdate,
)
from mise_recipes.app.services import recipes_service

router = APIRouter(prefix="/recipes", tags=["recipes"])


@router.post("", response_model=RecipeRead, status_code=status.HTTP_201_CREATED)
def create_recipe(payload: RecipeCreate, db: Session = Depends(get_db_session)):
    return recipes_service.create_recipe(db, payload)


@router.get("", response_model=List[RecipeRead])
def list_recipes(db: Session = Depends(get_db_session)):
    return recipes_service.list_recipes(db)


@router.get("/{recipe_id}", response_model=RecipeRead)
def get_recipe(recipe_id: int, db: Session = Depends(get_db_session)):
    return recipes_service.get_recipe(db, recipe_id)


@router.get("/{recipe_id}/instructions", response_model=List[InstructionHighlight])
def get_highlighted_instructions(recipe_id: int, db: Session = Depends(get_db_session)):
    """Instruction steps split into spans tagged with the prep group they mention."""
    return recipes_service.get_highlighted_instructions(db, recipe_id)


@router.patch("/{recipe_id}", response_model=RecipeRead)
def update_recipe(recipe_id: int, payload: RecipeUpdate, db: Session = Depends(get_db_session)):
    return recipes_service.update_recipe(db, recipe_id, payload)


@router.put("/{recipe_id}/prep-groups", response_model=RecipeRead)
def set_prep_groups(recipe_id: int, payload: PrepGroupsText, db: Session = Depends(get_db_session)):
    return recipes_service.set_prep_groups_from_text(db, recipe_id, payload.text)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recipe(recipe_id: int, db: Session = Depends(get_db_session)):
    recipes_service.delete_recipe(db, recipe_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
