"""Selection tracking and the structural edits that must keep it consistent.

Selection holds positions into the working set. Any edit that removes items
shifts the positions behind it, so removal and selection remapping always
happen in the same transition.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import replace
from typing import AbstractSet, FrozenSet, Iterable

from menu_import.editor.errors import SelectionError
from menu_import.editor.state import EditorState, require_edit_mode
from menu_import.schemas import CandidateItem


def _check_index(state: EditorState, index: int) -> None:
    if not 0 <= index < len(state.working_set):
        raise SelectionError(
            f"Item position {index} is outside the working set "
            f"({len(state.working_set)} items)."
        )


def remap_selection(
    selection: AbstractSet[int], removed: Iterable[int]
) -> FrozenSet[int]:
    """Return ``selection`` after the positions in ``removed`` are deleted.

    Removed positions leave the selection; every surviving position moves down
    by the number of removed positions below it.
    """

    ordered = sorted(set(removed))
    dropped = set(ordered)
    return frozenset(
        position - bisect_left(ordered, position)
        for position in selection
        if position not in dropped
    )


def remove_positions(state: EditorState, positions: Iterable[int]) -> EditorState:
    """Delete several items at once, remapping the selection to match."""

    removed = set(positions)
    if not removed:
        return state
    remaining = tuple(
        item for index, item in enumerate(state.working_set) if index not in removed
    )
    return replace(
        state,
        working_set=remaining,
        selection=remap_selection(state.selection, removed),
    )


def toggle_selection(state: EditorState, index: int) -> EditorState:
    require_edit_mode(state)
    _check_index(state, index)
    selection = set(state.selection)
    if index in selection:
        selection.remove(index)
    else:
        selection.add(index)
    return replace(state, selection=frozenset(selection))


def select_all(state: EditorState) -> EditorState:
    require_edit_mode(state)
    return replace(state, selection=frozenset(range(len(state.working_set))))


def clear_selection(state: EditorState) -> EditorState:
    return replace(state, selection=frozenset())


def delete_item(state: EditorState, index: int) -> EditorState:
    """Remove one item; selected positions after it shift down by one."""

    require_edit_mode(state)
    _check_index(state, index)
    working_set = state.working_set[:index] + state.working_set[index + 1 :]
    selection = frozenset(
        position - 1 if position > index else position
        for position in state.selection
        if position != index
    )
    return replace(state, working_set=working_set, selection=selection)


def bulk_delete(state: EditorState) -> EditorState:
    """Delete every selected item and clear the selection.

    Positions are removed highest first so earlier removals never shift the
    positions still waiting to be removed. An empty selection is a no-op.
    """

    require_edit_mode(state)
    if not state.selection:
        return state
    items = list(state.working_set)
    for index in sorted(state.selection, reverse=True):
        del items[index]
    return replace(state, working_set=tuple(items), selection=frozenset())


def edit_item(state: EditorState, index: int, item: CandidateItem) -> EditorState:
    """Replace the item at ``index``; the extracted source text is kept."""

    require_edit_mode(state)
    _check_index(state, index)
    current = state.working_set[index]
    if item.original_text != current.original_text:
        item = item.model_copy(update={"original_text": current.original_text})
    working_set = state.working_set[:index] + (item,) + state.working_set[index + 1 :]
    return replace(state, working_set=working_set)
