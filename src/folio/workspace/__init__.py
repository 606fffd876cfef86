"""Workspace state ownership: commands, events, favorites and the coordinator."""

from .commands import (
    ClearLayout,
    CloseAllTabs,
    CloseOtherTabs,
    ClosePane,
    CloseTab,
    CloseTabsMatching,
    LayoutCommand,
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
from .coordinator import WorkspaceCoordinator
from .events import (
    ActiveDocumentChanged,
    ActivePaneChanged,
    DocumentsChanged,
    Event,
    EventBus,
    LayoutChanged,
    TabsEvicted,
    WorkspaceRestored,
)
from .favorites import FavoritesState, RecentPage

__all__ = [
    "ActiveDocumentChanged",
    "ActivePaneChanged",
    "ClearLayout",
    "CloseAllTabs",
    "CloseOtherTabs",
    "ClosePane",
    "CloseTab",
    "CloseTabsMatching",
    "DocumentsChanged",
    "Event",
    "EventBus",
    "FavoritesState",
    "LayoutChanged",
    "LayoutCommand",
    "OpenTab",
    "RecentPage",
    "ReorderTabs",
    "ReplaceTabId",
    "ResetLayout",
    "SelectTab",
    "SetActivePane",
    "SetPaneEditing",
    "SetPaneRatio",
    "SetTabDirty",
    "SetTabTitle",
    "SplitPane",
    "TabsEvicted",
    "WorkspaceCoordinator",
    "WorkspaceRestored",
    "apply_commands",
]
