"""Category operations over the working set.

Categories have no table of their own: a category is whatever string items
carry in ``category``. Renaming, merging and creating are therefore field
rewrites across the working set, and a category disappears as soon as no item
references it.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from menu_import.editor.errors import CategoryError
from menu_import.editor.selection import remove_positions
from menu_import.editor.state import EditorState, require_edit_mode
from menu_import.schemas import ITEM_CLASSES

logger = logging.getLogger(__name__)

PLACEHOLDER_DESCRIPTION = (
    "Edit this item or delete it after adding real items to this category"
)


def _recategorize(state: EditorState, old_name: str, new_name: str) -> EditorState:
    working_set = tuple(
        item.model_copy(update={"category": new_name}) if item.category == old_name else item
        for item in state.working_set
    )
    expanded = set(state.expanded_categories)
    if old_name in expanded:
        expanded.discard(old_name)
        expanded.add(new_name)
    return replace(
        state, working_set=working_set, expanded_categories=frozenset(expanded)
    )


def rename_category(state: EditorState, old_name: str, new_name: str) -> EditorState:
    """Move every item of ``old_name`` to ``new_name``."""

    require_edit_mode(state)
    target = (new_name or "").strip()
    if not target:
        raise CategoryError("Category name cannot be blank.")
    if target == old_name:
        return state
    return _recategorize(state, old_name, target)


def merge_categories(state: EditorState, source: str, target: str) -> EditorState:
    """Fold ``source`` into ``target``; ``source`` ceases to exist."""

    require_edit_mode(state)
    target = (target or "").strip()
    if not target:
        raise CategoryError("Choose a category to merge into.")
    if source == target:
        raise CategoryError("Cannot merge a category into itself.")
    return _recategorize(state, source, target)


def delete_category(state: EditorState, name: str) -> EditorState:
    """Drop every item in ``name`` and forget its expanded flag."""

    require_edit_mode(state)
    doomed = [index for index, item in enumerate(state.working_set) if item.category == name]
    logger.info("Deleting category %r with %d items", name, len(doomed))
    updated = remove_positions(state, doomed)
    return replace(
        updated, expanded_categories=state.expanded_categories - {name}
    )


def create_category(
    state: EditorState, name: str, *, move_selected: bool = False
) -> EditorState:
    """Create a category, either from the selection or as an empty placeholder.

    With ``move_selected`` the selected items are moved into the new category
    and the selection is cleared. Without it a placeholder item is appended so
    the category has a row the user can edit or delete.
    """

    require_edit_mode(state)
    trimmed = (name or "").strip()
    if not trimmed:
        raise CategoryError("Category name cannot be blank.")
    if trimmed in state.categories():
        raise CategoryError(f'Category "{trimmed}" already exists!')

    expanded = state.expanded_categories | {trimmed}

    if move_selected:
        if not state.selection:
            return replace(state, expanded_categories=expanded)
        working_set = tuple(
            item.model_copy(update={"category": trimmed})
            if index in state.selection
            else item
            for index, item in enumerate(state.working_set)
        )
        return replace(
            state,
            working_set=working_set,
            selection=frozenset(),
            expanded_categories=expanded,
        )

    item_type = "food"
    if state.selection:
        item_type = state.working_set[min(state.selection)].item_type
    placeholder = ITEM_CLASSES[item_type](
        name=f"New {trimmed} Item",
        category=trimmed,
        confidence=100,
        original_text=f"Placeholder item for {trimmed} category",
        description=PLACEHOLDER_DESCRIPTION,
    )
    return replace(
        state,
        working_set=state.working_set + (placeholder,),
        expanded_categories=expanded,
    )
