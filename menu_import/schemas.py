"""Shared pydantic schemas.

Field names are snake_case in Python and camelCase on the wire, matching the
payloads exchanged with the browser editor and the menu import endpoint.
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from menu_import.validators import coerce_price

ItemType = Literal["food", "beverage", "wine"]
ItemTypeFilter = Literal["all", "food", "beverage", "wine"]


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ServingOption(CamelModel):
    """A size/price pair offered for a wine (glass, bottle, magnum...)."""

    model_config = ConfigDict(frozen=True)

    size: str
    price: float = 0.0

    @field_validator("price", mode="before")
    @classmethod
    def _tolerant_price(cls, value: object) -> float:
        coerced = coerce_price(value)
        return 0.0 if coerced is None else coerced


class _CandidateItemBase(CamelModel):
    """Fields shared by every extracted menu entry."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Item name as shown on the menu")
    category: str = Field(
        min_length=1, description="Free-text grouping key; categories are implicit"
    )
    price: float | None = None
    description: str | None = None
    confidence: int = Field(default=50, ge=0, le=100)
    original_text: str = Field(
        default="", description="Source snippet the item was extracted from"
    )

    @field_validator("price", mode="before")
    @classmethod
    def _tolerant_price(cls, value: object) -> float | None:
        return coerce_price(value)


class FoodItem(_CandidateItemBase):
    """Dish, starter, side or dessert."""

    item_type: Literal["food"] = "food"
    ingredients: List[str] = Field(default_factory=list)
    cooking_methods: List[str] = Field(default_factory=list)
    allergens: List[str] = Field(default_factory=list)
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_dairy_free: bool = False
    is_spicy: bool = False


class BeverageItem(_CandidateItemBase):
    """Cocktail, beer, spirit, soft drink, coffee or tea."""

    item_type: Literal["beverage"] = "beverage"
    spirit_type: str | None = None
    beer_style: str | None = None
    cocktail_ingredients: List[str] = Field(default_factory=list)
    alcohol_content: str | None = None
    serving_style: str | None = None
    temperature: str | None = None
    is_non_alcoholic: bool = False


class WineItem(_CandidateItemBase):
    """Any wine, including sparkling, fortified and sake."""

    item_type: Literal["wine"] = "wine"
    vintage: int | None = None
    producer: str | None = None
    region: str | None = None
    grape_variety: List[str] = Field(default_factory=list)
    wine_color: str | None = None
    wine_style: str | None = None
    serving_options: List[ServingOption] = Field(default_factory=list)


CandidateItem = Annotated[
    Union[FoodItem, BeverageItem, WineItem], Field(discriminator="item_type")
]

ITEM_CLASSES: dict[str, type[_CandidateItemBase]] = {
    "food": FoodItem,
    "beverage": BeverageItem,
    "wine": WineItem,
}


class ParseResult(CamelModel):
    """One extraction response; immutable once stored in a session."""

    menu_name: str
    items: List[CandidateItem] = Field(default_factory=list)
    total_items_found: int = 0
    processing_notes: List[str] = Field(default_factory=list)


class MenuSummary(CamelModel):
    """An existing menu that can receive imported items."""

    id: str
    name: str


class ImportCommitRequest(CamelModel):
    """Payload accepted by the menu import endpoint."""

    clean_result: ParseResult
    restaurant_id: str
    target_menu_id: str | None = None
    menu_name: str | None = None


class ImportCommitResult(CamelModel):
    """Counts reported after items have been written to a menu."""

    menu_id: str
    menu_name: str
    total_items: int
    imported_items: int
    failed_items: int = 0
    processing_notes: List[str] = Field(default_factory=list)


class ImportCommitResponse(CamelModel):
    success: bool = True
    message: str | None = None
    data: ImportCommitResult | None = None


class NewMenuTarget(CamelModel):
    mode: Literal["new"] = "new"
    menu_name: str


class ExistingMenuTarget(CamelModel):
    mode: Literal["existing"] = "existing"
    target_menu_id: str


ImportTarget = Annotated[
    Union[NewMenuTarget, ExistingMenuTarget], Field(discriminator="mode")
]


class SessionImportRequest(CamelModel):
    """Request body for finalising the import of an editor session."""

    restaurant_id: str
    target: ImportTarget


class SessionImportResponse(CamelModel):
    imported_items: int
    menu_id: str
    menu_name: str
    existing_menus: List[MenuSummary] = Field(default_factory=list)


class GroupedEntry(CamelModel):
    index: int = Field(description="Position of the item in the working set")
    item: CandidateItem


class CategoryGroup(CamelModel):
    category: str
    item_type: str
    expanded: bool
    entries: List[GroupedEntry]


class EditorStateView(CamelModel):
    working_set: List[CandidateItem]
    selection: List[int]
    expanded_categories: List[str]
    edit_mode: bool


class EditorSessionResponse(CamelModel):
    """Snapshot of an editor session plus its derived grouped view."""

    session_id: str
    restaurant_id: str
    file_type: str | None = None
    parse_result: ParseResult | None = None
    state: EditorStateView
    item_type: ItemTypeFilter = "all"
    groups: List[CategoryGroup] = Field(default_factory=list)
    type_counts: dict[str, int] = Field(default_factory=dict)
    default_menu_name: str | None = None
