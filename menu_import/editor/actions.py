"""Edit actions accepted by the session actions endpoint."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import Field

from menu_import.schemas import CamelModel, CandidateItem


class RenameCategory(CamelModel):
    type: Literal["rename_category"] = "rename_category"
    old_name: str
    new_name: str


class MergeCategories(CamelModel):
    type: Literal["merge_categories"] = "merge_categories"
    source: str
    target: str


class DeleteCategory(CamelModel):
    type: Literal["delete_category"] = "delete_category"
    category: str
    confirm: bool = False


class CreateCategory(CamelModel):
    type: Literal["create_category"] = "create_category"
    name: str
    move_selected: bool = False


class ToggleSelection(CamelModel):
    type: Literal["toggle_selection"] = "toggle_selection"
    index: int


class SelectAll(CamelModel):
    type: Literal["select_all"] = "select_all"


class ClearSelection(CamelModel):
    type: Literal["clear_selection"] = "clear_selection"


class DeleteItem(CamelModel):
    type: Literal["delete_item"] = "delete_item"
    index: int


class BulkDelete(CamelModel):
    type: Literal["bulk_delete"] = "bulk_delete"


class EditItem(CamelModel):
    type: Literal["edit_item"] = "edit_item"
    index: int
    item: CandidateItem


class ToggleCategory(CamelModel):
    type: Literal["toggle_category"] = "toggle_category"
    category: str


class ExpandAll(CamelModel):
    type: Literal["expand_all"] = "expand_all"


class CollapseAll(CamelModel):
    type: Literal["collapse_all"] = "collapse_all"


EditAction = Annotated[
    Union[
        RenameCategory,
        MergeCategories,
        DeleteCategory,
        CreateCategory,
        ToggleSelection,
        SelectAll,
        ClearSelection,
        DeleteItem,
        BulkDelete,
        EditItem,
        ToggleCategory,
        ExpandAll,
        CollapseAll,
    ],
    Field(discriminator="type"),
]


class EditActionRequest(CamelModel):
    """Request body wrapping a single edit action."""

    action: EditAction
