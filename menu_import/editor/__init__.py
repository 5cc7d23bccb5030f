"""In-memory editing of extracted menu items."""

from menu_import.editor.errors import (
    CategoryError,
    ConfirmationRequiredError,
    EditModeError,
    EditorError,
    SelectionError,
)
from menu_import.editor.reducer import reduce
from menu_import.editor.state import EditorState

__all__ = [
    "CategoryError",
    "ConfirmationRequiredError",
    "EditModeError",
    "EditorError",
    "EditorState",
    "SelectionError",
    "reduce",
]
