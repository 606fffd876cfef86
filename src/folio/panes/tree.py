"""Pure operations over the pane layout tree.

Every function takes a tree value and returns a new one. Unaffected subtrees
are shared with the input, and an operation that changes nothing returns the
input object itself. Unknown pane or tab ids are treated as no-ops because UI
events may refer to panes that a previous event already removed.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Callable, Iterator

from .model import (
    DEFAULT_RATIO,
    PaneIdAllocator,
    PaneLeaf,
    PaneNode,
    PaneSplit,
    SplitDirection,
    Tab,
    clamp_ratio,
)

__all__ = [
    "iter_leaves",
    "leaf_ids",
    "find_leaf",
    "first_leaf_id",
    "count_leaves",
    "count_splits",
    "has_split",
    "collect_leaf_doc_ids",
    "open_tab",
    "select_tab",
    "close_tab",
    "close_other_tabs",
    "close_all_tabs",
    "reorder_tabs",
    "set_tab_dirty",
    "set_tab_title",
    "replace_tab_id",
    "close_tabs_matching",
    "split_pane",
    "close_pane",
    "set_pane_ratio",
    "set_pane_editing",
    "is_pane_editing",
]

LOGGER = logging.getLogger(__name__)

LeafUpdater = Callable[[PaneLeaf], PaneLeaf]


# ----------------------------------------------------------------------
# Traversal helpers
# ----------------------------------------------------------------------
def iter_leaves(node: PaneNode) -> Iterator[PaneLeaf]:
    """Yield leaves in canonical first-child-first order."""

    stack: list[PaneNode] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, PaneLeaf):
            yield current
        else:
            stack.append(current.second)
            stack.append(current.first)


def leaf_ids(node: PaneNode) -> list[str]:
    return [leaf.id for leaf in iter_leaves(node)]


def find_leaf(node: PaneNode, pane_id: str) -> PaneLeaf | None:
    for leaf in iter_leaves(node):
        if leaf.id == pane_id:
            return leaf
    return None


def first_leaf_id(node: PaneNode) -> str:
    while isinstance(node, PaneSplit):
        node = node.first
    return node.id


def count_leaves(node: PaneNode) -> int:
    return sum(1 for _ in iter_leaves(node))


def count_splits(node: PaneNode) -> int:
    splits = 0
    stack: list[PaneNode] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, PaneSplit):
            splits += 1
            stack.extend((current.first, current.second))
    return splits


def has_split(node: PaneNode) -> bool:
    return isinstance(node, PaneSplit)


def collect_leaf_doc_ids(node: PaneNode) -> list[str]:
    """Return the active document of every leaf that has one."""

    return [leaf.active_tab_id for leaf in iter_leaves(node) if leaf.active_tab_id]


# ----------------------------------------------------------------------
# Structural sharing primitives
# ----------------------------------------------------------------------
NodeVisitor = Callable[[PaneNode], "PaneNode | None"]


def _with_children(split: PaneSplit, first: PaneNode, second: PaneNode) -> PaneSplit:
    if first is split.first and second is split.second:
        return split
    return dataclasses.replace(split, first=first, second=second)


def _rebuild(root: PaneNode, visit: NodeVisitor) -> PaneNode:
    """Rebuild ``root`` bottom-up with an explicit stack.

    ``visit`` returns a replacement for a node, or ``None`` to keep a leaf or
    descend into a split. Splits whose children are unchanged are reused.
    """

    built: list[PaneNode] = []
    pending: list[tuple[PaneNode, bool]] = [(root, False)]
    while pending:
        node, children_done = pending.pop()
        if children_done:
            second = built.pop()
            first = built.pop()
            built.append(_with_children(node, first, second))  # type: ignore[arg-type]
            continue
        replacement = visit(node)
        if replacement is not None:
            built.append(replacement)
        elif isinstance(node, PaneLeaf):
            built.append(node)
        else:
            pending.append((node, True))
            pending.append((node.second, False))
            pending.append((node.first, False))
    return built[0]


def _update_leaf(node: PaneNode, pane_id: str, updater: LeafUpdater) -> PaneNode:
    def visit(current: PaneNode) -> PaneNode | None:
        if isinstance(current, PaneLeaf) and current.id == pane_id:
            return updater(current)
        return None

    return _rebuild(node, visit)


def _update_all_leaves(node: PaneNode, updater: LeafUpdater) -> PaneNode:
    def visit(current: PaneNode) -> PaneNode | None:
        return updater(current) if isinstance(current, PaneLeaf) else None

    return _rebuild(node, visit)


def _replace_node(node: PaneNode, node_id: str, replacement: PaneNode) -> PaneNode:
    return _rebuild(node, lambda current: replacement if current.id == node_id else None)


def _remove_leaf(node: PaneNode, pane_id: str) -> PaneNode:
    def visit(current: PaneNode) -> PaneNode | None:
        if isinstance(current, PaneLeaf):
            return None
        if isinstance(current.first, PaneLeaf) and current.first.id == pane_id:
            return current.second
        if isinstance(current.second, PaneLeaf) and current.second.id == pane_id:
            return current.first
        return None

    return _rebuild(node, visit)


def _pick_next_active(tabs: tuple[Tab, ...], removed_index: int) -> str | None:
    """The tab that slid into ``removed_index``, else the last tab, else ``None``."""

    if not tabs:
        return None
    if removed_index >= len(tabs):
        return tabs[-1].id
    return tabs[removed_index].id


# ----------------------------------------------------------------------
# Tab operations
# ----------------------------------------------------------------------
def open_tab(tree: PaneNode, active_pane_id: str, doc_id: str, title: str) -> PaneNode:
    """Open ``doc_id`` in the active pane, or focus it if already open there."""

    def updater(leaf: PaneLeaf) -> PaneLeaf:
        if leaf.has_tab(doc_id):
            if leaf.active_tab_id == doc_id:
                return leaf
            return dataclasses.replace(leaf, active_tab_id=doc_id)
        return dataclasses.replace(
            leaf,
            tabs=leaf.tabs + (Tab(id=doc_id, title=title),),
            active_tab_id=doc_id,
        )

    result = _update_leaf(tree, active_pane_id, updater)
    if result is tree and find_leaf(tree, active_pane_id) is None:
        LOGGER.debug("open_tab: unknown pane_id=%s", active_pane_id)
    return result


def select_tab(tree: PaneNode, pane_id: str, tab_id: str) -> PaneNode:
    def updater(leaf: PaneLeaf) -> PaneLeaf:
        if leaf.active_tab_id == tab_id or not leaf.has_tab(tab_id):
            return leaf
        return dataclasses.replace(leaf, active_tab_id=tab_id)

    return _update_leaf(tree, pane_id, updater)


def close_tab(tree: PaneNode, pane_id: str, tab_id: str) -> PaneNode:
    def updater(leaf: PaneLeaf) -> PaneLeaf:
        index = leaf.tab_index(tab_id)
        if index == -1:
            return leaf
        tabs = leaf.tabs[:index] + leaf.tabs[index + 1 :]
        active = leaf.active_tab_id
        if active == tab_id:
            active = _pick_next_active(tabs, index)
        return dataclasses.replace(leaf, tabs=tabs, active_tab_id=active)

    return _update_leaf(tree, pane_id, updater)


def close_other_tabs(tree: PaneNode, pane_id: str, keep_tab_id: str) -> PaneNode:
    def updater(leaf: PaneLeaf) -> PaneLeaf:
        index = leaf.tab_index(keep_tab_id)
        if index == -1:
            return leaf
        return dataclasses.replace(leaf, tabs=(leaf.tabs[index],), active_tab_id=keep_tab_id)

    return _update_leaf(tree, pane_id, updater)


def close_all_tabs(tree: PaneNode, pane_id: str) -> PaneNode:
    def updater(leaf: PaneLeaf) -> PaneLeaf:
        if not leaf.tabs and leaf.active_tab_id is None:
            return leaf
        return dataclasses.replace(leaf, tabs=(), active_tab_id=None)

    return _update_leaf(tree, pane_id, updater)


def reorder_tabs(tree: PaneNode, pane_id: str, from_index: int, to_index: int) -> PaneNode:
    """Move the tab at ``from_index`` so that it ends up at ``to_index``."""

    def updater(leaf: PaneLeaf) -> PaneLeaf:
        if not 0 <= from_index < len(leaf.tabs):
            return leaf
        tabs = list(leaf.tabs)
        moved = tabs.pop(from_index)
        target = min(max(to_index, 0), len(tabs))
        if target == from_index:
            return leaf
        tabs.insert(target, moved)
        return dataclasses.replace(leaf, tabs=tuple(tabs))

    return _update_leaf(tree, pane_id, updater)


def _update_tabs_everywhere(tree: PaneNode, tab_id: str, change: Callable[[Tab], Tab]) -> PaneNode:
    def updater(leaf: PaneLeaf) -> PaneLeaf:
        if not leaf.has_tab(tab_id):
            return leaf
        tabs = tuple(change(tab) if tab.id == tab_id else tab for tab in leaf.tabs)
        if tabs == leaf.tabs:
            return leaf
        return dataclasses.replace(leaf, tabs=tabs)

    return _update_all_leaves(tree, updater)


def set_tab_dirty(tree: PaneNode, tab_id: str, dirty: bool) -> PaneNode:
    return _update_tabs_everywhere(tree, tab_id, lambda tab: dataclasses.replace(tab, is_dirty=dirty))


def set_tab_title(tree: PaneNode, tab_id: str, title: str) -> PaneNode:
    return _update_tabs_everywhere(tree, tab_id, lambda tab: dataclasses.replace(tab, title=title))


def replace_tab_id(tree: PaneNode, old_id: str, new_id: str, new_title: str) -> PaneNode:
    """Give every ``old_id`` tab a permanent identity (e.g. a draft's first save).

    A leaf that already holds ``new_id`` drops the old tab instead of keeping
    two tabs for the same document.
    """

    def updater(leaf: PaneLeaf) -> PaneLeaf:
        index = leaf.tab_index(old_id)
        if index == -1 or old_id == new_id:
            return leaf
        if leaf.has_tab(new_id):
            tabs = leaf.tabs[:index] + leaf.tabs[index + 1 :]
        else:
            renamed = dataclasses.replace(leaf.tabs[index], id=new_id, title=new_title)
            tabs = leaf.tabs[:index] + (renamed,) + leaf.tabs[index + 1 :]
        active = new_id if leaf.active_tab_id == old_id else leaf.active_tab_id
        return dataclasses.replace(leaf, tabs=tabs, active_tab_id=active)

    return _update_all_leaves(tree, updater)


def close_tabs_matching(tree: PaneNode, predicate: Callable[[str], bool]) -> PaneNode:
    """Evict every tab whose id satisfies ``predicate`` from every leaf."""

    def updater(leaf: PaneLeaf) -> PaneLeaf:
        tabs = tuple(tab for tab in leaf.tabs if not predicate(tab.id))
        if len(tabs) == len(leaf.tabs):
            return leaf
        active = leaf.active_tab_id
        if active is not None and predicate(active):
            active = _pick_next_active(tabs, leaf.tab_index(active))
        return dataclasses.replace(leaf, tabs=tabs, active_tab_id=active)

    return _update_all_leaves(tree, updater)


# ----------------------------------------------------------------------
# Pane operations
# ----------------------------------------------------------------------
def split_pane(
    tree: PaneNode,
    pane_id: str,
    direction: SplitDirection | str,
    *,
    new_id: Callable[[], str] | None = None,
) -> tuple[PaneNode, str | None]:
    """Split ``pane_id`` into two identical copies.

    Returns the new tree and the id of the second leaf, which becomes the
    active pane. When ``pane_id`` is unknown the tree is returned unchanged
    together with ``None``.
    """

    leaf = find_leaf(tree, pane_id)
    if leaf is None:
        LOGGER.debug("split_pane: unknown pane_id=%s", pane_id)
        return tree, None
    allocate = new_id
    if allocate is None:
        allocate = PaneIdAllocator()
        allocate.observe(tree)
    first = dataclasses.replace(leaf, id=allocate())
    second = dataclasses.replace(leaf, id=allocate())
    split = PaneSplit(
        id=allocate(),
        direction=SplitDirection(direction),
        ratio=DEFAULT_RATIO,
        first=first,
        second=second,
    )
    return _replace_node(tree, pane_id, split), second.id


def close_pane(tree: PaneNode, active_pane_id: str, pane_id: str) -> tuple[PaneNode, str]:
    """Remove the leaf ``pane_id`` and promote its sibling.

    The new active pane is the first leaf of the resulting tree. Closing the
    only pane, or an id that is not a leaf, leaves the layout untouched.
    """

    if isinstance(tree, PaneLeaf):
        return tree, active_pane_id
    if find_leaf(tree, pane_id) is None:
        LOGGER.debug("close_pane: unknown pane_id=%s", pane_id)
        return tree, active_pane_id
    result = _remove_leaf(tree, pane_id)
    return result, first_leaf_id(result)


def set_pane_ratio(tree: PaneNode, split_id: str, ratio: float) -> PaneNode:
    clamped = clamp_ratio(ratio)

    def visit(node: PaneNode) -> PaneNode | None:
        if isinstance(node, PaneLeaf) or node.id != split_id:
            return None
        return node if node.ratio == clamped else dataclasses.replace(node, ratio=clamped)

    return _rebuild(tree, visit)


def set_pane_editing(tree: PaneNode, pane_id: str, editing: bool) -> PaneNode:
    def updater(leaf: PaneLeaf) -> PaneLeaf:
        if leaf.editing == editing:
            return leaf
        return dataclasses.replace(leaf, editing=editing)

    return _update_leaf(tree, pane_id, updater)


def is_pane_editing(tree: PaneNode, pane_id: str) -> bool:
    leaf = find_leaf(tree, pane_id)
    return leaf.editing if leaf is not None else False
