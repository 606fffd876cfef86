"""Tests for layout command records."""

from __future__ import annotations

from folio.panes.layout import initial_layout
from folio.panes.model import ROOT_PANE_ID, PaneIdAllocator
from folio.workspace.commands import (
    ClearLayout,
    CloseAllTabs,
    CloseOtherTabs,
    ClosePane,
    CloseTab,
    CloseTabsMatching,
    OpenTab,
    ReorderTabs,
    ReplaceTabId,
    ResetLayout,
    SelectTab,
    SetActivePane,
    SetPaneEditing,
    SetPaneRatio,
    SetTabDirty,
    SetTabTitle,
    SplitPane,
    apply_commands,
)


def test_command_names_are_unique() -> None:
    commands = [
        OpenTab,
        SelectTab,
        CloseTab,
        CloseOtherTabs,
        CloseAllTabs,
        ReorderTabs,
        SetTabDirty,
        SetTabTitle,
        ReplaceTabId,
        CloseTabsMatching,
        SplitPane,
        ClosePane,
        SetPaneRatio,
        SetActivePane,
        SetPaneEditing,
        ResetLayout,
        ClearLayout,
    ]

    names = [command.name for command in commands]

    assert len(set(names)) == len(names)


def test_commands_apply_in_order() -> None:
    allocator = PaneIdAllocator()
    layout = apply_commands(
        initial_layout(),
        [
            OpenTab(doc_id="a", title="A"),
            OpenTab(doc_id="b", title="B"),
            SplitPane(pane_id=ROOT_PANE_ID),
            SetTabDirty(tab_id="a", dirty=True),
            CloseTab(pane_id="pane-2", tab_id="b"),
            SetPaneRatio(split_id="pane-3", ratio=0.7),
            SetTabTitle(tab_id="a", title="Alpha"),
            ReorderTabs(pane_id="pane-1", from_index=1, to_index=0),
        ],
        id_factory=allocator,
    )

    assert layout.leaf_ids() == ["pane-1", "pane-2"]
    assert layout.active_pane_id == "pane-2"
    assert layout.find_leaf("pane-1").tab_ids == ("b", "a")
    assert layout.find_leaf("pane-2").tab_ids == ("a",)
    assert layout.find_leaf("pane-2").tabs[0].is_dirty
    assert layout.find_leaf("pane-2").tabs[0].title == "Alpha"
    assert layout.root.ratio == 0.7


def test_order_matters() -> None:
    """Commands are not commutative, so replaying in another order differs."""
    open_then_close = apply_commands(initial_layout(), [OpenTab("a", "A"), CloseTab(ROOT_PANE_ID, "a")])
    close_then_open = apply_commands(initial_layout(), [CloseTab(ROOT_PANE_ID, "a"), OpenTab("a", "A")])

    assert open_then_close.active_doc_id is None
    assert close_then_open.active_doc_id == "a"


def test_close_tabs_matching_and_replace() -> None:
    layout = apply_commands(
        initial_layout(),
        [
            OpenTab("draft", "Untitled"),
            OpenTab("notes/x", "X"),
            ReplaceTabId(old_id="draft", new_id="notes/draft", new_title="Draft"),
            CloseTabsMatching(predicate=lambda tab_id: tab_id.startswith("notes/x")),
        ],
    )

    assert layout.root.tab_ids == ("notes/draft",)
    assert layout.active_doc_id == "notes/draft"


def test_pane_commands() -> None:
    allocator = PaneIdAllocator()
    layout = apply_commands(
        initial_layout(),
        [
            OpenTab("a", "A"),
            SplitPane(ROOT_PANE_ID, "vertical"),
            SetActivePane("pane-1"),
            SetPaneEditing("pane-1", True),
        ],
        id_factory=allocator,
    )
    assert layout.active_pane_id == "pane-1"
    assert layout.is_pane_editing("pane-1")

    closed = ClosePane("pane-1").apply(layout)
    assert closed.leaf_ids() == ["pane-2"]

    reset = ResetLayout().apply(layout)
    assert reset.leaf_ids() == [ROOT_PANE_ID]
    assert reset.root.editing


def test_tab_strip_commands() -> None:
    layout = apply_commands(
        initial_layout(),
        [OpenTab("a", "A"), OpenTab("b", "B"), OpenTab("c", "C"), SelectTab(ROOT_PANE_ID, "a")],
    )

    assert CloseOtherTabs(ROOT_PANE_ID, "b").apply(layout).root.tab_ids == ("b",)
    assert CloseAllTabs(ROOT_PANE_ID).apply(layout).root.tab_ids == ()
    assert layout.active_doc_id == "a"


def test_clear_layout() -> None:
    empty = initial_layout()

    assert ClearLayout().apply(empty) is empty
    assert ClearLayout().apply(empty.open_tab("a", "A")) == empty
