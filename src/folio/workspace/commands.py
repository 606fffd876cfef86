"""Layout commands applied in UI event order by the workspace coordinator.

Each command is a small frozen record with an ``apply`` method that maps the
current :class:`~folio.panes.layout.PaneLayout` to the next one. Commands are
not commutative, so the coordinator applies them strictly one at a time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, ClassVar

from ..panes.layout import PaneLayout, initial_layout
from ..panes.model import SplitDirection

__all__ = [
    "LayoutCommand",
    "OpenTab",
    "SelectTab",
    "CloseTab",
    "CloseOtherTabs",
    "CloseAllTabs",
    "ReorderTabs",
    "SetTabDirty",
    "SetTabTitle",
    "ReplaceTabId",
    "CloseTabsMatching",
    "SplitPane",
    "ClosePane",
    "SetPaneRatio",
    "SetActivePane",
    "SetPaneEditing",
    "ResetLayout",
    "ClearLayout",
    "apply_commands",
]

IdFactory = Callable[[], str]


@dataclass(frozen=True, slots=True)
class LayoutCommand:
    """Base class for layout commands."""

    name: ClassVar[str] = "command"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class OpenTab(LayoutCommand):
    doc_id: str
    title: str
    name: ClassVar[str] = "open_tab"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.open_tab(self.doc_id, self.title)


@dataclass(frozen=True, slots=True)
class SelectTab(LayoutCommand):
    pane_id: str
    tab_id: str
    name: ClassVar[str] = "select_tab"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.select_tab(self.pane_id, self.tab_id)


@dataclass(frozen=True, slots=True)
class CloseTab(LayoutCommand):
    pane_id: str
    tab_id: str
    name: ClassVar[str] = "close_tab"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.close_tab(self.pane_id, self.tab_id)


@dataclass(frozen=True, slots=True)
class CloseOtherTabs(LayoutCommand):
    pane_id: str
    keep_tab_id: str
    name: ClassVar[str] = "close_other_tabs"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.close_other_tabs(self.pane_id, self.keep_tab_id)


@dataclass(frozen=True, slots=True)
class CloseAllTabs(LayoutCommand):
    pane_id: str
    name: ClassVar[str] = "close_all_tabs"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.close_all_tabs(self.pane_id)


@dataclass(frozen=True, slots=True)
class ReorderTabs(LayoutCommand):
    pane_id: str
    from_index: int
    to_index: int
    name: ClassVar[str] = "reorder_tabs"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.reorder_tabs(self.pane_id, self.from_index, self.to_index)


@dataclass(frozen=True, slots=True)
class SetTabDirty(LayoutCommand):
    tab_id: str
    dirty: bool
    name: ClassVar[str] = "set_tab_dirty"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.set_tab_dirty(self.tab_id, self.dirty)


@dataclass(frozen=True, slots=True)
class SetTabTitle(LayoutCommand):
    tab_id: str
    title: str
    name: ClassVar[str] = "set_tab_title"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.set_tab_title(self.tab_id, self.title)


@dataclass(frozen=True, slots=True)
class ReplaceTabId(LayoutCommand):
    old_id: str
    new_id: str
    new_title: str
    name: ClassVar[str] = "replace_tab_id"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.replace_tab_id(self.old_id, self.new_id, self.new_title)


@dataclass(frozen=True, slots=True)
class CloseTabsMatching(LayoutCommand):
    predicate: Callable[[str], bool]
    name: ClassVar[str] = "close_tabs_matching"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.close_tabs_matching(self.predicate)


@dataclass(frozen=True, slots=True)
class SplitPane(LayoutCommand):
    pane_id: str
    direction: SplitDirection = SplitDirection.HORIZONTAL
    name: ClassVar[str] = "split_pane"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.split_pane(self.pane_id, self.direction, new_id=id_factory)


@dataclass(frozen=True, slots=True)
class ClosePane(LayoutCommand):
    pane_id: str
    name: ClassVar[str] = "close_pane"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.close_pane(self.pane_id)


@dataclass(frozen=True, slots=True)
class SetPaneRatio(LayoutCommand):
    split_id: str
    ratio: float
    name: ClassVar[str] = "set_pane_ratio"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.set_pane_ratio(self.split_id, self.ratio)


@dataclass(frozen=True, slots=True)
class SetActivePane(LayoutCommand):
    pane_id: str
    name: ClassVar[str] = "set_active_pane"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.set_active_pane(self.pane_id)


@dataclass(frozen=True, slots=True)
class SetPaneEditing(LayoutCommand):
    pane_id: str
    editing: bool
    name: ClassVar[str] = "set_pane_editing"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.set_pane_editing(self.pane_id, self.editing)


@dataclass(frozen=True, slots=True)
class ResetLayout(LayoutCommand):
    name: ClassVar[str] = "reset_layout"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        return layout.reset()


@dataclass(frozen=True, slots=True)
class ClearLayout(LayoutCommand):
    """Close every tab in every pane and return to the initial layout."""

    name: ClassVar[str] = "clear_layout"

    def apply(self, layout: PaneLayout, *, id_factory: IdFactory | None = None) -> PaneLayout:
        cleared = initial_layout()
        return layout if cleared == layout else cleared


def apply_commands(
    layout: PaneLayout,
    commands: list[LayoutCommand] | tuple[LayoutCommand, ...],
    *,
    id_factory: IdFactory | None = None,
) -> PaneLayout:
    """Fold ``commands`` over ``layout`` in order."""

    for command in commands:
        layout = command.apply(layout, id_factory=id_factory)
    return layout
