"""Immutable value types for the split-pane layout tree."""

from __future__ import annotations

import itertools
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

__all__ = [
    "MIN_RATIO",
    "MAX_RATIO",
    "DEFAULT_RATIO",
    "ROOT_PANE_ID",
    "SplitDirection",
    "Tab",
    "PaneLeaf",
    "PaneSplit",
    "PaneNode",
    "PaneIdAllocator",
    "clamp_ratio",
]

MIN_RATIO = 0.15
MAX_RATIO = 0.85
DEFAULT_RATIO = 0.5
ROOT_PANE_ID = "pane-root"

_PANE_ID_PATTERN = re.compile(r"^pane-(\d+)$")


def clamp_ratio(ratio: float) -> float:
    """Clamp ``ratio`` into ``[MIN_RATIO, MAX_RATIO]``."""

    value = float(ratio)
    if math.isnan(value):
        return DEFAULT_RATIO
    return min(MAX_RATIO, max(MIN_RATIO, value))


class SplitDirection(str, Enum):
    """Axis along which a split divides its space."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(slots=True, frozen=True)
class Tab:
    """An open document reference inside a pane. ``id`` is the document id."""

    id: str
    title: str
    is_dirty: bool = False


@dataclass(slots=True, frozen=True)
class PaneLeaf:
    """A pane holding an ordered tab strip."""

    id: str
    tabs: tuple[Tab, ...] = ()
    active_tab_id: str | None = None
    editing: bool = False

    def tab_index(self, tab_id: str) -> int:
        for index, tab in enumerate(self.tabs):
            if tab.id == tab_id:
                return index
        return -1

    def has_tab(self, tab_id: str) -> bool:
        return self.tab_index(tab_id) != -1

    @property
    def tab_ids(self) -> tuple[str, ...]:
        return tuple(tab.id for tab in self.tabs)


@dataclass(slots=True, frozen=True)
class PaneSplit:
    """An internal node dividing space between two child panes."""

    id: str
    direction: SplitDirection
    first: "PaneNode"
    second: "PaneNode"
    ratio: float = field(default=DEFAULT_RATIO)

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", SplitDirection(self.direction))
        object.__setattr__(self, "ratio", clamp_ratio(self.ratio))


PaneNode = Union[PaneLeaf, PaneSplit]


class PaneIdAllocator:
    """Hands out ``pane-N`` identifiers that never collide with observed ones."""

    __slots__ = ("_counter",)

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(max(start, 1))

    def __call__(self) -> str:
        return f"pane-{next(self._counter)}"

    def observe(self, node: PaneNode) -> None:
        """Advance past every ``pane-N`` id found in ``node``."""

        highest = 0
        stack: list[PaneNode] = [node]
        while stack:
            current = stack.pop()
            match = _PANE_ID_PATTERN.match(current.id)
            if match:
                highest = max(highest, int(match.group(1)))
            if isinstance(current, PaneSplit):
                stack.extend((current.first, current.second))
        if highest:
            upcoming = next(self._counter)
            self._counter = itertools.count(max(upcoming, highest + 1))
