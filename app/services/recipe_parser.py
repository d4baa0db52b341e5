"""Recipe parsing: prompt the model, then normalize whatever comes back."""

from __future__ import annotations

import logging
from enum import Enum
from typing import List

from app.config import Settings
from app.models.recipe import RecipeRecord
from app.services.completion_service import ChatMessage, CompletionService
from app.services.page_fetcher import PageFetcher
from app.utils.recipe_normalization import normalize_recipe_text

logger = logging.getLogger(__name__)


class SourceMode(str, Enum):
    TEXT = "text"
    OCR = "ocr"
    URL = "url"


RECIPE_JSON_SHAPE = (
    '{"title": "Recipe Name", '
    '"ingredientsByProcessingStep": [{"name": "Ingredients", "items": [{"quantity": "1 cup", "name": "flour"}]}], '
    '"steps": "Complete cooking instructions with all steps and details", '
    '"tags": ["dinner", "easy"]}'
)

_SYSTEM_PROMPTS = {
    SourceMode.TEXT: (
        "You are a recipe extractor. Given plain text, extract structured recipe data as JSON "
        f"with this exact format: {RECIPE_JSON_SHAPE}. "
        "Group ingredients by the processing step they are used in, in the order they appear. "
        "Keep quantities exactly as written. Include ALL ingredients and ALL cooking instructions. "
        "Return only the JSON object."
    ),
    SourceMode.OCR: (
        "You are a recipe extractor. Extract structured recipe data as JSON "
        f"with this exact format: {RECIPE_JSON_SHAPE}. "
        "For OCR text, interpret and clean up the scanned content while preserving the original language. "
        "Include ALL ingredients with their quantities and ALL cooking instructions."
    ),
    SourceMode.URL: (
        "You are a content structure analyzer. Your job is to IDENTIFY and ORGANIZE recipe content "
        "from webpage text, NOT to rewrite or translate anything. Extract the recipe data as JSON: "
        '{"title": "exact title as written", "ingredientsByProcessingStep": [{"name": "section name if any", '
        '"items": [{"quantity": "exact quantity as written", "name": "exact ingredient name as written"}]}], '
        '"steps": "exact cooking instructions as written", "tags": ["category tags"]}. '
        "CRITICAL: Copy all text EXACTLY as written - do not change words, measurements, or language. "
        "Only organize the content into the correct structure."
    ),
}

_USER_PROMPTS = {
    SourceMode.TEXT: "Extract this recipe as JSON:\n\n{content}",
    SourceMode.OCR: (
        "Extract and clean up this OCR recipe text as JSON. "
        "Preserve the original language but fix any OCR errors:\n\n{content}"
    ),
    SourceMode.URL: (
        "Organize this webpage content into structured recipe JSON. "
        "Copy all recipe text EXACTLY as written - do not rewrite, translate, or change anything:\n\n{content}"
    ),
}


def build_messages(content: str, mode: SourceMode) -> List[ChatMessage]:
    return [
        ChatMessage(role="system", content=_SYSTEM_PROMPTS[mode]),
        ChatMessage(role="user", content=_USER_PROMPTS[mode].format(content=content)),
    ]


class RecipeParser:
    """Turns text or a recipe page into a RecipeRecord."""

    def __init__(self, settings: Settings, completion_service: CompletionService, page_fetcher: PageFetcher):
        self.settings = settings
        self.completion_service = completion_service
        self.page_fetcher = page_fetcher

    def temperature_for(self, mode: SourceMode) -> float:
        return {
            SourceMode.TEXT: self.settings.text_temperature,
            SourceMode.OCR: self.settings.ocr_temperature,
            SourceMode.URL: self.settings.url_temperature,
        }[mode]

    async def parse_text(self, text: str, mode: SourceMode = SourceMode.OCR) -> RecipeRecord:
        """
        Parse pasted or OCR'd text.

        Raises:
            CompletionError: If the model call fails
        """
        return await self._complete_and_normalize(text, mode)

    async def parse_url(self, url: str) -> RecipeRecord:
        """
        Fetch a recipe page and parse its visible text.

        Raises:
            ScrapingError: If the page cannot be fetched
            CompletionError: If the model call fails
        """
        page_text = await self.page_fetcher.fetch_text(url)
        logger.info("Extracted page text", extra={"url": url[:200], "text_length": len(page_text)})
        return await self._complete_and_normalize(page_text, SourceMode.URL)

    async def _complete_and_normalize(self, content: str, mode: SourceMode) -> RecipeRecord:
        completion = await self.completion_service.complete(
            build_messages(content, mode),
            temperature=self.temperature_for(mode),
        )
        logger.info(
            "Model completion received",
            extra={"mode": mode.value, "completion_length": len(completion)},
        )
        return normalize_recipe_text(completion)
