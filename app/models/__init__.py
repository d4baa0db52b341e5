"""Pydantic models."""

from app.models.recipe import (
    DEFAULT_TITLE,
    IngredientGroup,
    IngredientLine,
    RecipeRecord,
)

__all__ = [
    "DEFAULT_TITLE",
    "IngredientGroup",
    "IngredientLine",
    "RecipeRecord",
]
