"""Split-pane layout tree: value types, pure operations and persistence codec."""

from .codec import LayoutError, deserialize_layout, dumps_layout, loads_layout, serialize_layout
from .layout import PaneLayout, initial_layout
from .model import (
    MAX_RATIO,
    MIN_RATIO,
    ROOT_PANE_ID,
    PaneIdAllocator,
    PaneLeaf,
    PaneNode,
    PaneSplit,
    SplitDirection,
    Tab,
    clamp_ratio,
)

__all__ = [
    "MAX_RATIO",
    "MIN_RATIO",
    "ROOT_PANE_ID",
    "LayoutError",
    "PaneIdAllocator",
    "PaneLayout",
    "PaneLeaf",
    "PaneNode",
    "PaneSplit",
    "SplitDirection",
    "Tab",
    "clamp_ratio",
    "deserialize_layout",
    "dumps_layout",
    "initial_layout",
    "loads_layout",
    "serialize_layout",
]
