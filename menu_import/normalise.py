"""Normalisation of loosely-typed extraction records into candidate items."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping

from pydantic import TypeAdapter, ValidationError

from menu_import.schemas import ITEM_CLASSES, CandidateItem

logger = logging.getLogger(__name__)

_CANDIDATE_ADAPTER: TypeAdapter[CandidateItem] = TypeAdapter(CandidateItem)

_DEFAULT_CONFIDENCE = 50

_ROSE_MARKERS = (
    "rosé",
    "rose",
    "rosado",
    "rosato",
    "chiaretto",
    "pink",
    "blush",
    "provence",
)
_COLOR_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("red", ("red", "rouge", "tinto", "rosso")),
    ("white", ("white", "blanc", "blanco", "bianco", "weiss", "branco")),
    ("rosé", _ROSE_MARKERS),
    (
        "sparkling",
        (
            "sparkling",
            "champagne",
            "prosecco",
            "cava",
            "cremant",
            "crémant",
            "franciacorta",
            "spumante",
            "pétillant",
            "petillant",
        ),
    ),
    ("orange", ("orange", "amber", "skin contact", "skin-contact")),
)
_STYLE_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "sparkling",
        ("sparkling", "prosecco", "cava", "cremant", "franciacorta", "petillant", "pétillant"),
    ),
    ("champagne", ("champagne",)),
    (
        "dessert",
        (
            "dessert",
            "sweet",
            "ice wine",
            "icewine",
            "eiswein",
            "late harvest",
            "vendange tardive",
            "botrytis",
            "noble rot",
            "sauternes",
            "tokaji",
            "aszu",
            "aszú",
            "moscato",
            "moscatel",
            "passito",
        ),
    ),
    (
        "fortified",
        (
            "fortified",
            "port",
            "sherry",
            "madeira",
            "marsala",
            "vermouth",
            "fino",
            "manzanilla",
            "amontillado",
            "oloroso",
            "pedro ximenez",
        ),
    ),
)

# Wire names of list-valued fields; blank entries are dropped.
_LIST_FIELDS = (
    "ingredients",
    "cookingMethods",
    "allergens",
    "cocktailIngredients",
    "grapeVariety",
)
_TEXT_FIELDS = (
    "description",
    "producer",
    "region",
    "spiritType",
    "beerStyle",
    "alcoholContent",
    "servingStyle",
    "temperature",
)


def normalise_wine_color(
    color: str | None,
    *,
    name: str = "",
    region: str | None = None,
    category: str = "",
) -> str:
    """Map a free-text wine colour onto red/white/rosé/sparkling/orange/other."""

    mapped = "other"
    if color:
        lowered = color.strip().lower()
        for label, markers in _COLOR_MARKERS:
            if any(marker in lowered for marker in markers):
                mapped = label
                break

    if mapped == "other":
        haystack = " ".join((name, region or "", category)).lower()
        if any(marker in haystack for marker in _ROSE_MARKERS):
            mapped = "rosé"
    return mapped


def normalise_wine_style(style: str | None) -> str:
    """Map a free-text wine style onto still/sparkling/champagne/dessert/fortified."""

    if not style:
        return "still"
    lowered = style.strip().lower()
    for label, markers in _STYLE_MARKERS:
        if any(marker in lowered for marker in markers):
            return label
    return "still"


def coerce_vintage(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    digits = "".join(ch for ch in str(value).strip() if ch.isdigit())[:4]
    if len(digits) != 4:
        return None
    return int(digits)


def _clamp_confidence(value: object) -> int:
    try:
        confidence = int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return _DEFAULT_CONFIDENCE
    if confidence == 0:
        return _DEFAULT_CONFIDENCE
    return max(0, min(100, confidence))


def _clean_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_candidate(raw: Mapping[str, Any]) -> CandidateItem | None:
    """Build a candidate item from one extraction record, or ``None`` if unusable.

    Records need a name, a category and a known item type. Everything else is
    cleaned up rather than rejected.
    """

    if not isinstance(raw, Mapping):
        return None

    name = _clean_text(raw.get("name"))
    category = _clean_text(raw.get("category"))
    item_type = str(raw.get("itemType") or "").strip().lower()
    if not name or not category or item_type not in ITEM_CLASSES:
        return None

    allowed = {
        field.alias or field_name
        for field_name, field in ITEM_CLASSES[item_type].model_fields.items()
    }
    record: dict[str, Any] = {key: value for key, value in raw.items() if key in allowed}
    record.update(
        name=name,
        category=category,
        itemType=item_type,
        confidence=_clamp_confidence(raw.get("confidence")),
        originalText=str(raw.get("originalText") or "").strip(),
    )
    for key in _TEXT_FIELDS:
        if key in record:
            record[key] = _clean_text(record[key])
    for key in _LIST_FIELDS:
        if key in record:
            values = record[key] if isinstance(record[key], list) else []
            record[key] = [str(entry).strip() for entry in values if entry and str(entry).strip()]

    if item_type == "wine":
        record["vintage"] = coerce_vintage(raw.get("vintage"))
        record["wineColor"] = normalise_wine_color(
            _clean_text(raw.get("wineColor")),
            name=name,
            region=_clean_text(raw.get("region")),
            category=category,
        )
        record["wineStyle"] = normalise_wine_style(_clean_text(raw.get("wineStyle")))
        options = raw.get("servingOptions")
        record["servingOptions"] = [
            {**option, "size": _clean_text(option.get("size"))}
            for option in (options if isinstance(options, list) else [])
            if isinstance(option, Mapping) and _clean_text(option.get("size"))
        ]

    for key, value in list(record.items()):
        if value is None:
            record.pop(key)

    try:
        return _CANDIDATE_ADAPTER.validate_python(record)
    except ValidationError as exc:
        logger.warning("Skipping malformed menu item %r: %s", name, exc)
        return None


def remove_duplicates(items: Iterable[CandidateItem]) -> List[CandidateItem]:
    """Drop repeats sharing a lower-cased name, item type and price."""

    unique: List[CandidateItem] = []
    seen: set[tuple[str, str, float]] = set()
    for item in items:
        key = (item.name.strip().lower(), item.item_type, item.price or 0.0)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique
