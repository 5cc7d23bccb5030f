"""Editor state and edit-mode transitions.

``EditorState`` is an immutable snapshot. Every operation in this package takes
a state and returns a new one, so a rejected operation can never leave a
half-applied mutation behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, FrozenSet, Iterable, Sequence, Tuple

from menu_import.editor.errors import EditModeError
from menu_import.schemas import CandidateItem, EditorStateView, ParseResult


@dataclass(frozen=True)
class EditorState:
    """Working set, selection and presentation cache of one editing session."""

    working_set: Tuple[CandidateItem, ...] = ()
    selection: FrozenSet[int] = field(default_factory=frozenset)
    expanded_categories: FrozenSet[str] = field(default_factory=frozenset)
    edit_mode: bool = False

    def categories(self) -> set[str]:
        """Return every category currently referenced by an item."""

        return {item.category for item in self.working_set}

    def to_view(self) -> EditorStateView:
        return EditorStateView(
            working_set=list(self.working_set),
            selection=sorted(self.selection),
            expanded_categories=sorted(self.expanded_categories),
            edit_mode=self.edit_mode,
        )

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-compatible snapshot for session persistence."""

        return self.to_view().model_dump(mode="json", by_alias=True)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "EditorState":
        view = EditorStateView.model_validate(payload)
        return cls(
            working_set=tuple(view.working_set),
            selection=frozenset(view.selection),
            expanded_categories=frozenset(view.expanded_categories),
            edit_mode=view.edit_mode,
        )


def require_edit_mode(state: EditorState) -> None:
    if not state.edit_mode:
        raise EditModeError("Enter edit mode before changing menu items.")


def _all_categories(items: Iterable[CandidateItem]) -> FrozenSet[str]:
    return frozenset(item.category for item in items)


def load_result(result: ParseResult) -> EditorState:
    """Initialise a fresh state for a newly extracted result.

    Every category starts expanded so the user sees all extracted items.
    """

    return EditorState(
        working_set=tuple(result.items),
        expanded_categories=_all_categories(result.items),
    )


def enter_edit_mode(state: EditorState, result: ParseResult) -> EditorState:
    """Re-seed the working set from the result and switch editing on."""

    if state.edit_mode:
        return state
    return replace(
        state,
        working_set=tuple(result.items),
        selection=frozenset(),
        edit_mode=True,
    )


def cancel_edit(state: EditorState, result: ParseResult) -> EditorState:
    """Discard unsaved edits, reverting the working set to the stored result."""

    return replace(
        state,
        working_set=tuple(result.items),
        selection=frozenset(),
        edit_mode=False,
    )


def save_edits(
    state: EditorState, result: ParseResult
) -> tuple[ParseResult, EditorState]:
    """Promote the working set to the stored result and leave edit mode."""

    require_edit_mode(state)
    items = list(state.working_set)
    saved = result.model_copy(
        update={"items": items, "total_items_found": len(items)}
    )
    return saved, replace(state, selection=frozenset(), edit_mode=False)


def toggle_category(state: EditorState, category: str) -> EditorState:
    expanded = set(state.expanded_categories)
    if category in expanded:
        expanded.remove(category)
    else:
        expanded.add(category)
    return replace(state, expanded_categories=frozenset(expanded))


def expand_all(state: EditorState, categories: Sequence[str] | None = None) -> EditorState:
    names = frozenset(categories) if categories is not None else _all_categories(state.working_set)
    return replace(state, expanded_categories=names)


def collapse_all(state: EditorState) -> EditorState:
    return replace(state, expanded_categories=frozenset())

