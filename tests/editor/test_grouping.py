import pytest
from pydantic import ValidationError

from menu_import.editor.grouping import (
    build_category_groups,
    count_by_type,
    filter_by_type,
    group_by_category,
)
from menu_import.schemas import BeverageItem, FoodItem, WineItem


ITEMS = [
    FoodItem(name="Bruschetta", category="Starters"),
    WineItem(name="Chianti", category="Reds"),
    BeverageItem(name="Spritz", category="Cocktails"),
    FoodItem(name="Tiramisu", category="Desserts"),
    WineItem(name="Prosecco", category="Sparkling"),
    FoodItem(name="Olives", category="Starters"),
    BeverageItem(name="Peroni", category="Beer"),
]


def test_wine_categories_come_before_food():
    assert list(group_by_category(ITEMS)) == [
        "Reds",
        "Sparkling",
        "Beer",
        "Cocktails",
        "Desserts",
        "Starters",
    ]


def test_grouping_is_deterministic_for_any_input_order():
    shuffled = [ITEMS[index] for index in (6, 3, 0, 4, 1, 5, 2)]
    assert list(group_by_category(shuffled)) == list(group_by_category(ITEMS))


def test_groups_keep_working_set_positions():
    groups = group_by_category(ITEMS)
    assert [entry.index for entry in groups["Starters"]] == [0, 5]
    assert [entry.item.name for entry in groups["Starters"]] == ["Bruschetta", "Olives"]


def test_type_filter_preserves_original_indices():
    groups = group_by_category(ITEMS, "wine")
    assert list(groups) == ["Reds", "Sparkling"]
    assert groups["Sparkling"][0].index == 4


def test_filter_by_type():
    assert [item.name for item in filter_by_type(ITEMS, "beverage")] == ["Spritz", "Peroni"]
    assert len(filter_by_type(ITEMS, "all")) == len(ITEMS)


def test_counts_cover_every_type():
    assert count_by_type(ITEMS) == {"all": 7, "food": 3, "beverage": 2, "wine": 2}
    assert count_by_type([]) == {"all": 0, "food": 0, "beverage": 0, "wine": 0}


def test_category_type_follows_its_first_member():
    mixed = [
        BeverageItem(name="House Red Sangria", category="Jugs"),
        WineItem(name="Rioja", category="Jugs"),
        FoodItem(name="Chips", category="Sides"),
    ]
    groups = build_category_groups(mixed, {"Jugs"})
    assert [(group.category, group.item_type, group.expanded) for group in groups] == [
        ("Jugs", "beverage", True),
        ("Sides", "food", False),
    ]
    assert [entry.index for entry in groups[0].entries] == [0, 1]


def test_reds_group_before_starters():
    items = [
        FoodItem(name="Soup", category="Starters"),
        WineItem(name="Rioja", category="Reds"),
        FoodItem(name="Olives", category="Starters"),
    ]
    groups = group_by_category(items)
    assert [(category, len(entries)) for category, entries in groups.items()] == [
        ("Reds", 1),
        ("Starters", 2),
    ]


@pytest.mark.parametrize("category", ["", None])
def test_items_always_carry_a_category(category):
    with pytest.raises(ValidationError):
        FoodItem(name="Bread", category=category)
