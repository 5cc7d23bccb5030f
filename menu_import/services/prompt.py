"""Prompt building helpers for OpenAI payload construction."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from typing import List

__all__ = [
    "JSON_SCHEMA_NAME",
    "MenuDocument",
    "PromptRequest",
    "RESPONSE_ITEM_SCHEMA",
    "build_prompt",
    "build_reasoning_config",
    "build_response_object_schema",
    "build_text_config",
    "build_text_format_config",
]


@dataclass(frozen=True)
class PromptRequest:
    """Container describing a single Responses API prompt."""

    instructions: str
    content: List[dict[str, str]]


@dataclass(frozen=True)
class MenuDocument:
    """A menu file reference: inline text or an uploaded file id."""

    filename: str
    text: str | None = None
    file_id: str | None = None


SYSTEM_INSTRUCTIONS = (
    "You are a menu parsing specialist for restaurant staff training. "
    "Extract every menu item from the supplied document and return only JSON. "
    "Skip headers and decorative text, but never skip a dish, drink or wine: "
    "if a wine list has fifty wines, return fifty wines. "
    "Classify each item as 'food' (starters, mains, sides, desserts), "
    "'beverage' (cocktails, beers, spirits, soft drinks, coffee, tea) or "
    "'wine' (including sparkling, champagne, port and sake). "
    "Group items into the categories the menu itself uses. "
    "Give a confidence from 0 to 100 reflecting how clear the source text was, "
    "and copy the source line into originalText. "
    "When a detail is not on the menu, use null or an empty list instead of guessing."
)

_FOOD_RULES = (
    "For food: read dietary markers such as (V) vegetarian, (VG) vegan, (GF) gluten free "
    "and (DF) dairy free; list allergens that are stated; list key ingredients and cooking "
    "methods (grilled, fried, roasted, braised) found in the description; flag spicy dishes."
)
_BEVERAGE_RULES = (
    "For beverages: capture spirit type, beer style, cocktail ingredients, alcohol content "
    "(ABV), serving style (neat, on the rocks, draft), temperature, and whether the drink "
    "is non-alcoholic."
)
_WINE_RULES = (
    "For wines: capture vintage year, producer, region, grape varieties, colour "
    "(red, white, rosé, sparkling, orange) and style. When several prices appear, "
    "return them as servingOptions, e.g. '£8.50/£32' becomes "
    "[{size: 'Glass', price: 8.5}, {size: 'Bottle', price: 32}]."
)
_JSON_RULE = (
    "Respond strictly with JSON that matches the provided schema. "
    "Prices are plain numbers without currency symbols."
)

JSON_SCHEMA_NAME = "menu_extraction"


def _nullable(kind: str, description: str | None = None) -> dict[str, object]:
    schema: dict[str, object] = {"type": [kind, "null"]}
    if description:
        schema["description"] = description
    return schema


def _string_list(description: str) -> dict[str, object]:
    return {"type": "array", "items": {"type": "string"}, "description": description}


RESPONSE_ITEM_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Item name as written."},
        "category": {"type": "string", "description": "Menu section the item belongs to."},
        "itemType": {"type": "string", "enum": ["food", "beverage", "wine"]},
        "price": _nullable("number", "Main price without currency text."),
        "description": _nullable("string"),
        "confidence": {"type": "integer", "description": "0 to 100."},
        "originalText": {"type": "string", "description": "Source text of the item."},
        "ingredients": _string_list("Key ingredients (food)."),
        "cookingMethods": _string_list("Cooking methods (food)."),
        "allergens": _string_list("Stated allergens (food)."),
        "isVegetarian": {"type": "boolean"},
        "isVegan": {"type": "boolean"},
        "isGlutenFree": {"type": "boolean"},
        "isDairyFree": {"type": "boolean"},
        "isSpicy": {"type": "boolean"},
        "spiritType": _nullable("string"),
        "beerStyle": _nullable("string"),
        "cocktailIngredients": _string_list("Cocktail ingredients (beverage)."),
        "alcoholContent": _nullable("string"),
        "servingStyle": _nullable("string"),
        "temperature": _nullable("string"),
        "isNonAlcoholic": {"type": "boolean"},
        "vintage": _nullable("integer"),
        "producer": _nullable("string"),
        "region": _nullable("string"),
        "grapeVariety": _string_list("Grape varieties (wine)."),
        "wineColor": _nullable("string"),
        "wineStyle": _nullable("string"),
        "servingOptions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "size": {"type": "string"},
                    "price": {"type": "number"},
                },
                "required": ["size", "price"],
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}
RESPONSE_ITEM_SCHEMA["required"] = list(RESPONSE_ITEM_SCHEMA["properties"])  # type: ignore[arg-type]


def build_prompt(document: MenuDocument) -> PromptRequest:
    """Return the extraction prompt for one menu document."""

    if document.text is None and document.file_id is None:
        raise ValueError("A menu document needs either inline text or a file id.")

    content: List[dict[str, str]] = [
        {"type": "input_text", "text": _FOOD_RULES},
        {"type": "input_text", "text": _BEVERAGE_RULES},
        {"type": "input_text", "text": _WINE_RULES},
        {"type": "input_text", "text": _JSON_RULE},
        {
            "type": "input_text",
            "text": f"The file is named '{document.filename}'. Use it as a hint for menuName.",
        },
    ]
    if document.file_id is not None:
        content.append({"type": "input_file", "file_id": document.file_id})
    else:
        content.append({"type": "input_text", "text": f"Menu document:\n{document.text}"})

    return PromptRequest(instructions=SYSTEM_INSTRUCTIONS, content=content)


def build_response_object_schema() -> dict[str, object]:
    """Return top-level object schema required by OpenAI Responses."""

    return {
        "type": "object",
        "properties": {
            "menuName": {"type": "string"},
            "items": {"type": "array", "items": deepcopy(RESPONSE_ITEM_SCHEMA)},
            "processingNotes": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["menuName", "items", "processingNotes"],
        "additionalProperties": False,
    }


def build_text_format_config() -> dict[str, object]:
    """Return JSON schema formatting config for the OpenAI Responses API."""

    return {
        "type": "json_schema",
        "name": JSON_SCHEMA_NAME,
        "schema": build_response_object_schema(),
        "strict": True,
    }


def build_text_config() -> dict[str, object]:
    return {
        "format": build_text_format_config(),
        "verbosity": "low",
    }


def build_reasoning_config() -> dict[str, object]:
    return {"effort": "minimal"}
