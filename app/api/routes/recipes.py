"""Recipe parsing endpoints."""

import logging
from typing import Literal, Optional, Union

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.api.dependencies import get_recipe_parser, get_settings
from app.config import Settings
from app.middleware.auth import verify_api_key
from app.middleware.rate_limit import rate_limit_dependency
from app.models.recipe import RecipeRecord
from app.services.recipe_parser import RecipeParser, SourceMode
from app.utils.validators import validate_recipe_text, validate_url

logger = logging.getLogger(__name__)
router = APIRouter(
    tags=["recipes"],
    dependencies=[Depends(verify_api_key), Depends(rate_limit_dependency)],
)


class ParseRecipeRequest(BaseModel):
    """Request body for /parse-recipe."""

    text: Optional[str] = None
    # Pasted text or text recognised from a photo of a recipe
    mode: Literal["text", "ocr"] = "ocr"


class ParseUrlRequest(BaseModel):
    """Request body for /parse-url."""

    url: Optional[str] = None


@router.post("/parse-recipe", response_model=RecipeRecord)
async def parse_recipe(
    request: Request,
    body: ParseRecipeRequest,
    recipe_parser: RecipeParser = Depends(get_recipe_parser),
    app_settings: Settings = Depends(get_settings),
) -> Union[RecipeRecord, JSONResponse]:
    """
    Parse free text or OCR output into a recipe.

    - **text**: recipe text, at most `MAX_TEXT_LENGTH` characters
    - **mode**: `ocr` (default) asks the model to repair OCR errors, `text` keeps the text as written
    """
    text = validate_recipe_text(body.text, app_settings.max_text_length)

    logger.info(
        "Route /parse-recipe called",
        extra={
            "route": "/parse-recipe",
            "params": {"mode": body.mode, "text_length": len(text), "preview": text[:100]},
        },
    )

    record = await recipe_parser.parse_text(text, SourceMode(body.mode))

    if app_settings.legacy_result_envelope:
        return JSONResponse(content={"result": record.model_dump_json()})
    return record


@router.post("/parse-url", response_model=RecipeRecord)
async def parse_url(
    request: Request,
    body: ParseUrlRequest,
    recipe_parser: RecipeParser = Depends(get_recipe_parser),
) -> RecipeRecord:
    """
    Fetch a public recipe page and parse it into a recipe.

    - **url**: http(s) URL of the recipe page
    """
    url = validate_url(body.url)

    logger.info(
        "Route /parse-url called",
        extra={"route": "/parse-url", "params": {"url": url[:200]}},
    )

    return await recipe_parser.parse_url(url)
