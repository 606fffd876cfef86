"""The pane tree paired with the process-wide active pane id."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable

from . import tree as ops
from .model import ROOT_PANE_ID, PaneLeaf, PaneNode, SplitDirection

__all__ = ["PaneLayout", "initial_layout"]

LOGGER = logging.getLogger(__name__)


def initial_layout() -> "PaneLayout":
    """Return the session-start layout: one empty root pane."""

    return PaneLayout(root=PaneLeaf(id=ROOT_PANE_ID), active_pane_id=ROOT_PANE_ID)


@dataclass(slots=True, frozen=True)
class PaneLayout:
    """Immutable layout value; every method returns a new layout.

    Methods return ``self`` when nothing changes so callers can cheaply detect
    no-ops with an identity check.
    """

    root: PaneNode
    active_pane_id: str

    def __post_init__(self) -> None:
        if ops.find_leaf(self.root, self.active_pane_id) is None:
            fallback = ops.first_leaf_id(self.root)
            LOGGER.debug(
                "PaneLayout: active pane %s missing; falling back to %s",
                self.active_pane_id,
                fallback,
            )
            object.__setattr__(self, "active_pane_id", fallback)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def active_leaf(self) -> PaneLeaf:
        leaf = ops.find_leaf(self.root, self.active_pane_id)
        assert leaf is not None  # guaranteed by __post_init__
        return leaf

    @property
    def active_doc_id(self) -> str | None:
        return self.active_leaf.active_tab_id

    def has_split(self) -> bool:
        return ops.has_split(self.root)

    def leaf_ids(self) -> list[str]:
        return ops.leaf_ids(self.root)

    def find_leaf(self, pane_id: str) -> PaneLeaf | None:
        return ops.find_leaf(self.root, pane_id)

    def is_pane_editing(self, pane_id: str) -> bool:
        return ops.is_pane_editing(self.root, pane_id)

    def collect_leaf_doc_ids(self) -> list[str]:
        return ops.collect_leaf_doc_ids(self.root)

    def open_doc_ids(self) -> set[str]:
        return {tab.id for leaf in ops.iter_leaves(self.root) for tab in leaf.tabs}

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def _with_root(self, root: PaneNode, active_pane_id: str | None = None) -> "PaneLayout":
        target = self.active_pane_id if active_pane_id is None else active_pane_id
        if root is self.root and target == self.active_pane_id:
            return self
        return PaneLayout(root=root, active_pane_id=target)

    def open_tab(self, doc_id: str, title: str) -> "PaneLayout":
        return self._with_root(ops.open_tab(self.root, self.active_pane_id, doc_id, title))

    def select_tab(self, pane_id: str, tab_id: str) -> "PaneLayout":
        return self._with_root(ops.select_tab(self.root, pane_id, tab_id))

    def close_tab(self, pane_id: str, tab_id: str) -> "PaneLayout":
        return self._with_root(ops.close_tab(self.root, pane_id, tab_id))

    def close_other_tabs(self, pane_id: str, keep_tab_id: str) -> "PaneLayout":
        return self._with_root(ops.close_other_tabs(self.root, pane_id, keep_tab_id))

    def close_all_tabs(self, pane_id: str) -> "PaneLayout":
        return self._with_root(ops.close_all_tabs(self.root, pane_id))

    def reorder_tabs(self, pane_id: str, from_index: int, to_index: int) -> "PaneLayout":
        return self._with_root(ops.reorder_tabs(self.root, pane_id, from_index, to_index))

    def set_tab_dirty(self, tab_id: str, dirty: bool) -> "PaneLayout":
        return self._with_root(ops.set_tab_dirty(self.root, tab_id, dirty))

    def set_tab_title(self, tab_id: str, title: str) -> "PaneLayout":
        return self._with_root(ops.set_tab_title(self.root, tab_id, title))

    def replace_tab_id(self, old_id: str, new_id: str, new_title: str) -> "PaneLayout":
        return self._with_root(ops.replace_tab_id(self.root, old_id, new_id, new_title))

    def close_tabs_matching(self, predicate: Callable[[str], bool]) -> "PaneLayout":
        return self._with_root(ops.close_tabs_matching(self.root, predicate))

    def split_pane(
        self,
        pane_id: str,
        direction: SplitDirection | str,
        *,
        new_id: Callable[[], str] | None = None,
    ) -> "PaneLayout":
        root, active = ops.split_pane(self.root, pane_id, direction, new_id=new_id)
        return self._with_root(root, active)

    def close_pane(self, pane_id: str) -> "PaneLayout":
        root, active = ops.close_pane(self.root, self.active_pane_id, pane_id)
        return self._with_root(root, active)

    def set_pane_ratio(self, split_id: str, ratio: float) -> "PaneLayout":
        return self._with_root(ops.set_pane_ratio(self.root, split_id, ratio))

    def set_pane_editing(self, pane_id: str, editing: bool) -> "PaneLayout":
        return self._with_root(ops.set_pane_editing(self.root, pane_id, editing))

    def set_active_pane(self, pane_id: str) -> "PaneLayout":
        if ops.find_leaf(self.root, pane_id) is None:
            LOGGER.debug("set_active_pane: unknown pane_id=%s", pane_id)
            return self
        return self._with_root(self.root, pane_id)

    def reset(self) -> "PaneLayout":
        """Collapse to a single root pane that keeps the active pane's tabs."""

        leaf = self.active_leaf
        if isinstance(self.root, PaneLeaf) and leaf.id == ROOT_PANE_ID:
            return self
        return PaneLayout(root=dataclasses.replace(leaf, id=ROOT_PANE_ID), active_pane_id=ROOT_PANE_ID)
