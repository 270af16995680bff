"""Pydantic models for URL recipe parsing."""

from typing import List, Optional

from pydantic import BaseModel, Field

from mise_recipes.app.schemas.recipe import PrepGroup, RecipeCreate


class ScrapedRecipe(BaseModel):
    """Best-effort candidate pulled out of a page; never trusted before normalization."""

    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    servings: Optional[int] = None
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    ingredient_groups: List[PrepGroup] = Field(default_factory=list)
    parser_strategy: Optional[str] = None

    def has_content(self) -> bool:
        return bool(self.title or self.description or self.ingredients or self.instructions)


class ParseResult(BaseModel):
    """Result of a recipe import attempt."""

    success: bool
    recipe: Optional[RecipeCreate] = None
    parser_strategy: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    error_code: Optional[str] = None
    error_message: Optional[str] = None
