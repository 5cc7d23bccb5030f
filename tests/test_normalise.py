import pytest

from menu_import.normalise import (
    coerce_vintage,
    normalise_wine_color,
    normalise_wine_style,
    parse_candidate,
    remove_duplicates,
)
from menu_import.schemas import BeverageItem, FoodItem, WineItem


def test_parse_food_record():
    item = parse_candidate(
        {
            "name": "  Margherita ",
            "category": "Pizza",
            "itemType": "food",
            "price": "€11",
            "confidence": 92,
            "ingredients": ["tomato", "", "mozzarella", None],
            "isVegetarian": True,
            "wineColor": "red",
            "originalText": "Margherita ... 11",
        }
    )

    assert isinstance(item, FoodItem)
    assert item.name == "Margherita"
    assert item.price == 11.0
    assert item.ingredients == ["tomato", "mozzarella"]
    assert item.is_vegetarian is True
    assert not hasattr(item, "wine_color")


def test_parse_wine_record_normalises_fields():
    item = parse_candidate(
        {
            "name": "Whispering Angel",
            "category": "Wines by the glass",
            "itemType": "wine",
            "price": 12,
            "vintage": "2021 vintage",
            "region": "Provence",
            "wineColor": None,
            "wineStyle": "Still wine",
            "servingOptions": [
                {"size": "175ml", "price": "12"},
                {"size": "", "price": 40},
                "bottle",
            ],
        }
    )

    assert isinstance(item, WineItem)
    assert item.vintage == 2021
    assert item.wine_color == "rosé"
    assert item.wine_style == "still"
    assert [(option.size, option.price) for option in item.serving_options] == [("175ml", 12.0)]


@pytest.mark.parametrize(
    "record",
    [
        {"category": "Mains", "itemType": "food"},
        {"name": "Soup", "category": "  ", "itemType": "food"},
        {"name": "Soup", "category": "Mains", "itemType": "dessert"},
        {"name": "Soup", "category": "Mains"},
        "Soup",
    ],
)
def test_unusable_records_are_skipped(record):
    assert parse_candidate(record) is None


def test_missing_or_zero_confidence_defaults_to_fifty():
    record = {"name": "Cola", "category": "Soft drinks", "itemType": "beverage"}
    assert parse_candidate(record).confidence == 50
    assert parse_candidate({**record, "confidence": 0}).confidence == 50
    assert parse_candidate({**record, "confidence": 140}).confidence == 100


def test_unparsable_price_becomes_zero():
    item = parse_candidate(
        {"name": "Oysters", "category": "Raw bar", "itemType": "food", "price": "MP"}
    )
    assert item.price == 0.0


@pytest.mark.parametrize(
    ("color", "name", "expected"),
    [
        ("Red", "", "red"),
        ("vin blanc", "", "white"),
        ("Champagne", "", "sparkling"),
        ("skin contact", "", "orange"),
        (None, "Rosado de Navarra", "rosé"),
        (None, "Malbec", "other"),
    ],
)
def test_normalise_wine_color(color, name, expected):
    assert normalise_wine_color(color, name=name) == expected


@pytest.mark.parametrize(
    ("style", "expected"),
    [
        (None, "still"),
        ("Brut Champagne", "champagne"),
        ("Prosecco DOC", "sparkling"),
        ("Late harvest", "dessert"),
        ("Tawny Port", "fortified"),
        ("light and fruity", "still"),
    ],
)
def test_normalise_wine_style(style, expected):
    assert normalise_wine_style(style) == expected


def test_coerce_vintage():
    assert coerce_vintage(2019) == 2019
    assert coerce_vintage("NV") is None
    assert coerce_vintage(None) is None


def test_remove_duplicates_ignores_case_but_not_type_or_price():
    items = [
        FoodItem(name="Fries", category="Sides", price=4),
        FoodItem(name="fries ", category="Snacks", price=4),
        FoodItem(name="Fries", category="Sides", price=6),
        BeverageItem(name="Fries", category="Sides", price=4),
    ]
    unique = remove_duplicates(items)
    assert unique == [items[0], items[2], items[3]]


@pytest.mark.parametrize("confidence", ["inf", float("inf"), "-Infinity", "nan"])
def test_non_finite_confidence_defaults_to_fifty(confidence):
    item = parse_candidate(
        {"name": "Soup", "category": "Starters", "itemType": "food", "confidence": confidence}
    )
    assert item.confidence == 50


def test_numeric_serving_size_keeps_wine_item():
    item = parse_candidate(
        {
            "name": "Chablis",
            "category": "Whites",
            "itemType": "wine",
            "servingOptions": [{"size": 750, "price": 48}, {"size": " 125ml ", "price": 9}],
        }
    )

    assert isinstance(item, WineItem)
    assert [(option.size, option.price) for option in item.serving_options] == [
        ("750", 48.0),
        ("125ml", 9.0),
    ]
