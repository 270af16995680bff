import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from mise_recipes.app.api.deps import get_db_session
from mise_recipes.app.schemas.recipe import RecipeCreate
from mise_recipes.app.services import recipes_service, url_recipe_parser
from mise_recipes.app.services.url_parsing import ParseResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes/import", tags=["import"])


class ImportUrlRequest(BaseModel):
    url: str
    save: bool = False

    @field_validator("url")
    @classmethod
    def strip_url(cls, value: str) -> str:
        return value.strip()


class ImportTextRequest(BaseModel):
    text: str
    title: Optional[str] = None
    save: bool = False


class ImportResponse(BaseModel):
    success: bool
    recipe: Optional[RecipeCreate] = None
    created_recipe_id: Optional[int] = None
    warnings: List[str] = Field(default_factory=list)
    parser_strategy: Optional[str] = None
    error_code: Optional[str] = None
    message: Optional[str] = None


def _respond(result: ParseResult, save: bool, db: Session) -> ImportResponse:
    if not result.success or not result.recipe:
        return ImportResponse(
            success=False,
            warnings=result.warnings,
            parser_strategy=result.parser_strategy,
            error_code=result.error_code or "no_recipe_data",
            message=result.error_message or "Unable to import recipe",
        )

    created_recipe_id = None
    if save:
        try:
            created_recipe_id = recipes_service.create_recipe(db, result.recipe).id
        except HTTPException as exc:
            detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
            return ImportResponse(
                success=False,
                recipe=result.recipe,
                warnings=result.warnings,
                parser_strategy=result.parser_strategy,
                error_code="save_failed",
                message=detail,
            )

    return ImportResponse(
        success=True,
        recipe=result.recipe,
        created_recipe_id=created_recipe_id,
        warnings=result.warnings,
        parser_strategy=result.parser_strategy,
    )


@router.post("/url", response_model=ImportResponse)
async def import_from_url(payload: ImportUrlRequest, db: Session = Depends(get_db_session)):
    result = await url_recipe_parser.parse_recipe_from_url(payload.url)
    logger.info(
        "Import from %s: success=%s strategy=%s error=%s",
        payload.url,
        result.success,
        result.parser_strategy,
        result.error_code,
    )
    return _respond(result, payload.save, db)


@router.post("/text", response_model=ImportResponse)
def import_from_text(payload: ImportTextRequest, db: Session = Depends(get_db_session)):
    result = url_recipe_parser.parse_recipe_from_text(payload.text, title=payload.title)
    return _respond(result, payload.save, db)
