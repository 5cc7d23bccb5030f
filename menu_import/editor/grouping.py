"""Derived, read-only views over the working set."""

from __future__ import annotations

from typing import Dict, List, NamedTuple, Sequence

from menu_import.schemas import CandidateItem, CategoryGroup, GroupedEntry

# Wine first, then other drinks, then food.
_TYPE_PRIORITY = {"wine": 0, "beverage": 1, "food": 2}
_OTHER_PRIORITY = 3


class IndexedItem(NamedTuple):
    item: CandidateItem
    index: int


def filter_by_type(items: Sequence[CandidateItem], item_type: str) -> List[CandidateItem]:
    if item_type == "all":
        return list(items)
    return [item for item in items if item.item_type == item_type]


def group_by_category(
    items: Sequence[CandidateItem], item_type: str = "all"
) -> Dict[str, List[IndexedItem]]:
    """Group items by category, keeping each item's working-set position.

    Categories are ordered by the type of their first member (wine, beverage,
    food, anything else) and then by name.
    """

    groups: Dict[str, List[IndexedItem]] = {}
    for index, item in enumerate(items):
        if item_type != "all" and item.item_type != item_type:
            continue
        groups.setdefault(item.category, []).append(IndexedItem(item, index))

    def sort_key(category: str) -> tuple[int, str]:
        first = groups[category][0].item
        return _TYPE_PRIORITY.get(first.item_type, _OTHER_PRIORITY), category

    return {category: groups[category] for category in sorted(groups, key=sort_key)}


def count_by_type(items: Sequence[CandidateItem]) -> Dict[str, int]:
    counts = {"all": len(items), "food": 0, "beverage": 0, "wine": 0}
    for item in items:
        counts[item.item_type] = counts.get(item.item_type, 0) + 1
    return counts


def build_category_groups(
    items: Sequence[CandidateItem],
    expanded_categories: frozenset[str] | set[str],
    item_type: str = "all",
) -> List[CategoryGroup]:
    return [
        CategoryGroup(
            category=category,
            item_type=entries[0].item.item_type,
            expanded=category in expanded_categories,
            entries=[GroupedEntry(index=entry.index, item=entry.item) for entry in entries],
        )
        for category, entries in group_by_category(items, item_type).items()
    ]
