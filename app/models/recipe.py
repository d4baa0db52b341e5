"""Recipe Pydantic models."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TITLE = "Imported Recipe"


class IngredientLine(BaseModel):
    """Single ingredient line, kept as written."""

    quantity: str = Field("", description="Free-form quantity (e.g. '1 cup', '2-3', '')")
    name: str = Field("", description="Ingredient name as written")


class IngredientGroup(BaseModel):
    """Ingredients used in one processing step (e.g. 'Marinade')."""

    name: str = Field("", description="Section label, empty when the source has no sections")
    items: List[IngredientLine] = Field(default_factory=list, description="Ingredient lines in source order")


class RecipeRecord(BaseModel):
    """Canonical recipe returned by the parse endpoints."""

    title: str = Field(DEFAULT_TITLE, description="Recipe title")
    ingredientsByProcessingStep: List[IngredientGroup] = Field(
        default_factory=list, description="Ingredient sections in source order"
    )
    steps: str = Field("", description="Full cooking instructions")
    tags: List[str] = Field(default_factory=list, description="Unique labels, first occurrence order")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Chicken Shawarma",
                "ingredientsByProcessingStep": [
                    {
                        "name": "Marinade",
                        "items": [
                            {"quantity": "3 tbsp", "name": "olive oil"},
                            {"quantity": "1 tsp", "name": "cumin"},
                        ],
                    },
                    {
                        "name": "Chicken",
                        "items": [{"quantity": "1 kg", "name": "chicken thighs"}],
                    },
                ],
                "steps": "Mix the marinade.\n\nCoat the chicken and roast at 220C for 30 minutes.",
                "tags": ["dinner", "middle-eastern"],
            }
        }
    )
