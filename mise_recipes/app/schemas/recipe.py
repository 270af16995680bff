from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PrepGroup(BaseModel):
    """A named cluster of ingredients, optionally anchored to an instruction step."""

    title: str
    items: List[str] = Field(default_factory=list)
    step_index: Optional[int] = Field(None, alias="stepIndex")
    source_group: Optional[bool] = Field(None, alias="sourceGroup")

    model_config = ConfigDict(populate_by_name=True)


class HighlightSpan(BaseModel):
    text: str
    group_index: Optional[int] = None


class InstructionHighlight(BaseModel):
    step_index: int
    text: str
    spans: List[HighlightSpan]


def _coerce_lines(value):
    if isinstance(value, str):
        return value.splitlines()
    return value


class RecipeBase(BaseModel):
    title: str
    description: Optional[str] = None
    source_url: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    servings: Optional[int] = None
    prep_time_minutes: Optional[int] = None
    cook_time_minutes: Optional[int] = None


class RecipeCreate(RecipeBase):
    tags: List[str] = Field(default_factory=list)
    ingredients: List[str] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)
    prep_groups: Optional[List[PrepGroup]] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value

    @field_validator("ingredients", "instructions", "notes", mode="before")
    @classmethod
    def split_textarea(cls, value):
        return _coerce_lines(value)


class RecipeUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    source_url: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    servings: Optional[int] = None
    prep_time_minutes: Optional[int] = None
    cook_time_minutes: Optional[int] = None
    tags: Optional[List[str]] = None
    ingredients: Optional[List[str]] = None
    instructions: Optional[List[str]] = None
    notes: Optional[List[str]] = None

    @field_validator("ingredients", "instructions", "notes", mode="before")
    @classmethod
    def split_textarea(cls, value):
        return _coerce_lines(value)


class PrepGroupsText(BaseModel):
    text: str


class RecipeRead(RecipeBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    tags: List[str]
    ingredients: List[str]
    instructions: List[str]
    notes: List[str]
    prep_groups: List[PrepGroup]

    model_config = ConfigDict(from_attributes=True)
