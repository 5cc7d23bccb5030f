"""Single entry point applying an edit action to an editor state."""

from __future__ import annotations

from typing import Callable, Dict

from menu_import.editor import actions, categories, selection, state as editor_state
from menu_import.editor.errors import ConfirmationRequiredError
from menu_import.editor.state import EditorState


def _delete_category(state: EditorState, action: actions.DeleteCategory) -> EditorState:
    if not action.confirm:
        raise ConfirmationRequiredError(
            f'Deleting "{action.category}" removes all of its items. '
            "Repeat the request with confirm set to true."
        )
    return categories.delete_category(state, action.category)


_HANDLERS: Dict[str, Callable[[EditorState, object], EditorState]] = {
    "rename_category": lambda s, a: categories.rename_category(s, a.old_name, a.new_name),
    "merge_categories": lambda s, a: categories.merge_categories(s, a.source, a.target),
    "delete_category": _delete_category,
    "create_category": lambda s, a: categories.create_category(
        s, a.name, move_selected=a.move_selected
    ),
    "toggle_selection": lambda s, a: selection.toggle_selection(s, a.index),
    "select_all": lambda s, a: selection.select_all(s),
    "clear_selection": lambda s, a: selection.clear_selection(s),
    "delete_item": lambda s, a: selection.delete_item(s, a.index),
    "bulk_delete": lambda s, a: selection.bulk_delete(s),
    "edit_item": lambda s, a: selection.edit_item(s, a.index, a.item),
    "toggle_category": lambda s, a: editor_state.toggle_category(s, a.category),
    "expand_all": lambda s, a: editor_state.expand_all(s),
    "collapse_all": lambda s, a: editor_state.collapse_all(s),
}


def reduce(state: EditorState, action: actions.EditAction) -> EditorState:
    """Return the state produced by ``action``; raises ``EditorError`` on rejection."""

    return _HANDLERS[action.type](state, action)
