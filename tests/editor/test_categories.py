import pytest

from menu_import.editor import CategoryError, EditorState
from menu_import.editor.categories import (
    create_category,
    delete_category,
    merge_categories,
    rename_category,
)
from menu_import.schemas import BeverageItem, FoodItem, WineItem


def editing(items, selection=(), expanded=()):
    return EditorState(
        working_set=tuple(items),
        selection=frozenset(selection),
        expanded_categories=frozenset(expanded),
        edit_mode=True,
    )


def categories_of(state):
    return [item.category for item in state.working_set]


def sample_items():
    return [
        FoodItem(name="Soup", category="Mains", original_text="Soup 6"),
        FoodItem(name="Steak", category="Mains", original_text="Steak 24"),
        WineItem(name="Rioja", category="Reds", original_text="Rioja 9/34"),
        FoodItem(name="Pie", category="Mains", original_text="Pie 14"),
        BeverageItem(name="Negroni", category="Cocktails", original_text="Negroni 11"),
    ]


def test_rename_rewrites_every_member_and_expanded_entry():
    state = editing(sample_items(), expanded={"Mains", "Reds"})

    state = rename_category(state, "Mains", "Entrées")

    assert categories_of(state) == ["Entrées", "Entrées", "Reds", "Entrées", "Cocktails"]
    assert "Mains" not in state.categories()
    assert state.expanded_categories == {"Entrées", "Reds"}


def test_rename_trims_new_name():
    state = rename_category(editing(sample_items()), "Reds", "  Red Wines ")
    assert "Red Wines" in state.categories()


def test_rename_to_same_name_is_noop():
    state = editing(sample_items())
    assert rename_category(state, "Mains", "Mains") is state


def test_rename_to_blank_is_rejected():
    state = editing(sample_items())
    with pytest.raises(CategoryError):
        rename_category(state, "Mains", "   ")


def test_rename_leaves_collapsed_category_collapsed():
    state = rename_category(editing(sample_items(), expanded={"Reds"}), "Mains", "Plates")
    assert state.expanded_categories == {"Reds"}


def test_merge_moves_source_into_target():
    state = editing(sample_items(), expanded={"Cocktails"})

    state = merge_categories(state, "Cocktails", "Mains")

    assert "Cocktails" not in state.categories()
    assert categories_of(state).count("Mains") == 4
    assert state.expanded_categories == {"Mains"}


def test_merge_twice_is_noop_the_second_time():
    once = merge_categories(editing(sample_items()), "Reds", "Mains")
    twice = merge_categories(once, "Reds", "Mains")
    assert twice.working_set == once.working_set


def test_self_merge_is_rejected():
    with pytest.raises(CategoryError):
        merge_categories(editing(sample_items()), "Reds", "Reds")


def test_delete_category_removes_items_and_remaps_selection():
    items = sample_items()
    # Selected: Rioja (2) and Negroni (4); Mains occupy 0, 1 and 3.
    state = editing(items, selection={2, 4}, expanded={"Mains", "Reds"})

    state = delete_category(state, "Mains")

    assert [item.name for item in state.working_set] == ["Rioja", "Negroni"]
    assert state.selection == {0, 1}
    assert state.expanded_categories == {"Reds"}


def test_delete_category_drops_selected_members():
    state = editing(sample_items(), selection={1, 4})
    state = delete_category(state, "Mains")
    assert {state.working_set[index].name for index in state.selection} == {"Negroni"}


def test_create_rejects_existing_category_without_changes():
    state = editing(sample_items(), selection={0})

    with pytest.raises(CategoryError, match='Category "Mains" already exists'):
        create_category(state, "Mains")

    with pytest.raises(CategoryError):
        create_category(state, "Mains", move_selected=True)


def test_create_is_case_sensitive():
    state = create_category(editing(sample_items()), "mains")
    assert {"Mains", "mains"} <= state.categories()


def test_create_empty_category_appends_placeholder():
    state = editing(sample_items())

    state = create_category(state, "Desserts")

    assert len(state.working_set) == 6
    placeholder = state.working_set[-1]
    assert placeholder.category == "Desserts"
    assert placeholder.confidence == 100
    assert placeholder.item_type == "food"
    assert placeholder.name == "New Desserts Item"
    assert placeholder.original_text == "Placeholder item for Desserts category"
    assert "Desserts" in state.expanded_categories


def test_placeholder_inherits_type_of_first_selected_item():
    state = editing(sample_items(), selection={4, 2})
    state = create_category(state, "Whites")
    assert state.working_set[-1].item_type == "wine"
    assert state.selection == {2, 4}


def test_create_moves_selected_items_and_clears_selection():
    state = editing(sample_items(), selection={0, 3})

    state = create_category(state, "  Light Bites ", move_selected=True)

    assert len(state.working_set) == 5
    assert categories_of(state)[0] == "Light Bites"
    assert categories_of(state)[3] == "Light Bites"
    assert state.selection == set()
    assert "Light Bites" in state.expanded_categories


def test_create_moving_empty_selection_changes_no_items():
    state = editing(sample_items())
    created = create_category(state, "Specials", move_selected=True)
    assert created.working_set == state.working_set
    assert "Specials" in created.expanded_categories


def test_create_rejects_blank_name():
    with pytest.raises(CategoryError):
        create_category(editing(sample_items()), "  ")
