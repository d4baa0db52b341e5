"""Normalization of model completions into the RecipeRecord shape."""

import json
import logging
from typing import Any, Dict, List, Optional

from app.models.recipe import DEFAULT_TITLE, IngredientGroup, IngredientLine, RecipeRecord

logger = logging.getLogger(__name__)


def extract_json_candidate(text: str) -> Optional[str]:
    """Return the slice from the first ``{`` to the last ``}``, or None.

    Greedy on purpose: two separate objects in one completion come back as a
    single slice that will not parse, and the caller falls back to raw text.
    """
    if not text:
        return None
    start = text.find("{")
    if start == -1:
        return None
    end = text.rfind("}")
    if end < start:
        return None
    return text[start : end + 1]


def normalize_recipe_text(raw_text: str) -> RecipeRecord:
    """Turn a model completion into a fully populated RecipeRecord.

    Accepts pure JSON, JSON wrapped in prose (or markdown fences), and plain
    prose. Never raises: anything that cannot be read as a JSON object
    produces the fallback record, which keeps the whole completion in
    ``steps``.
    """
    raw_text = raw_text if isinstance(raw_text, str) else ""

    candidate = extract_json_candidate(raw_text)
    if candidate is None:
        logger.warning("No JSON object in completion, using fallback record", extra={"raw_length": len(raw_text)})
        return fallback_record(raw_text)

    try:
        data = json.loads(candidate)
    except (ValueError, RecursionError) as e:
        logger.warning(
            f"Completion JSON did not parse, using fallback record: {str(e)}",
            extra={"raw_length": len(raw_text)},
        )
        return fallback_record(raw_text)

    if not isinstance(data, dict):
        logger.warning("Completion JSON is not an object, using fallback record")
        return fallback_record(raw_text)

    if candidate != raw_text.strip():
        logger.debug("Extracted embedded JSON object from surrounding text")

    return RecipeRecord(
        title=_title(data.get("title")),
        ingredientsByProcessingStep=_groups(data.get("ingredientsByProcessingStep")),
        steps=_steps(data.get("steps"), raw_text),
        tags=_tags(data.get("tags")),
    )


def fallback_record(raw_text: str) -> RecipeRecord:
    """Record used when no structure can be recovered from the completion."""
    return RecipeRecord(
        title=DEFAULT_TITLE,
        ingredientsByProcessingStep=[],
        steps=raw_text,
        tags=[],
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _clean(text: str) -> str:
    # json.loads lets lone surrogates such as "\ud800" through; they cannot be encoded as UTF-8.
    return text.encode("utf-8", "surrogatepass").decode("utf-8", "replace")


def _scalar_text(value: Any) -> str:
    if isinstance(value, str):
        return _clean(value)
    if isinstance(value, bool) or value is None:
        return ""
    # Numbers keep their string form, so a title of 0 becomes "0", not the default.
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _title(value: Any) -> str:
    return _scalar_text(value) or DEFAULT_TITLE


def _steps(value: Any, raw_text: str) -> str:
    if isinstance(value, list):
        value = "\n".join(s for s in value if isinstance(s, str) and s)
    if isinstance(value, str) and value:
        return _clean(value)
    return raw_text


def _groups(value: Any) -> List[IngredientGroup]:
    if not isinstance(value, list):
        return []
    groups: List[IngredientGroup] = []
    for group in value:
        if not isinstance(group, dict):
            continue
        groups.append(IngredientGroup(name=_scalar_text(group.get("name")), items=_items(group.get("items"))))
    return groups


def _items(value: Any) -> List[IngredientLine]:
    if not isinstance(value, list):
        return []
    items: List[IngredientLine] = []
    for item in value:
        if isinstance(item, str):
            items.append(IngredientLine(quantity="", name=_clean(item)))
        elif isinstance(item, dict):
            items.append(
                IngredientLine(
                    quantity=_scalar_text(item.get("quantity")),
                    name=_scalar_text(item.get("name")),
                )
            )
    return items


def _tags(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    seen: Dict[str, None] = {}
    for tag in value:
        if isinstance(tag, str) and tag:
            seen.setdefault(_clean(tag), None)
    return list(seen)
