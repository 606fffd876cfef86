"""Build the navigable page forest from flat document metadata."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Iterable, Iterator

from .models import DocumentMeta, TreeNode

__all__ = [
    "TreeSortMode",
    "HierarchyBuilder",
    "build_tree",
    "find_node",
    "get_ancestors",
    "collect_descendant_ids",
    "flatten",
    "iter_nodes",
]

LOGGER = logging.getLogger(__name__)

SortKey = Callable[[DocumentMeta], tuple]


class TreeSortMode(Enum):
    """Sibling ordering used when building the page forest."""

    FOLDER_TITLE = "folder-title"
    ORDER = "order"

    @classmethod
    def parse(cls, value: "TreeSortMode | str | None") -> "TreeSortMode":
        if isinstance(value, TreeSortMode):
            return value
        normalized = (value or "").strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        LOGGER.warning("Unknown tree sort mode %r; using %s", value, cls.FOLDER_TITLE.value)
        return cls.FOLDER_TITLE


def _folder_title_key(meta: DocumentMeta) -> tuple:
    return (0 if meta.is_folder else 1, meta.title.casefold(), meta.id)


def _order_key(meta: DocumentMeta) -> tuple:
    return (meta.order, meta.id)


_SORT_KEYS: dict[TreeSortMode, SortKey] = {
    TreeSortMode.FOLDER_TITLE: _folder_title_key,
    TreeSortMode.ORDER: _order_key,
}


def build_tree(
    documents: Iterable[DocumentMeta],
    *,
    sort_mode: TreeSortMode | str = TreeSortMode.FOLDER_TITLE,
) -> list[TreeNode]:
    """Return the sorted forest for ``documents``.

    Documents whose parent is missing become roots. Members of a parent cycle
    would otherwise be unreachable, so they are promoted to roots as well;
    every input document appears exactly once in the result.
    """

    key = _SORT_KEYS[TreeSortMode.parse(sort_mode)]
    nodes: dict[str, TreeNode] = {}
    ordered: list[TreeNode] = []
    for meta in documents:
        if meta.id in nodes:
            LOGGER.warning("build_tree: duplicate document id %r ignored", meta.id)
            continue
        node = TreeNode(meta=meta)
        nodes[meta.id] = node
        ordered.append(node)

    roots: list[TreeNode] = []
    for node in ordered:
        parent_id = node.meta.parent
        parent = nodes.get(parent_id) if parent_id else None
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent.children.append(node)

    reached = {node.id for node in _walk(roots)}
    if len(reached) < len(ordered):
        _promote_cycles(ordered, nodes, roots, reached, key)

    _sort_siblings(roots, key)
    return roots


def _promote_cycles(
    ordered: list[TreeNode],
    nodes: dict[str, TreeNode],
    roots: list[TreeNode],
    reached: set[str],
    key: SortKey,
) -> None:
    for node in ordered:
        if node.id in reached:
            continue
        # Unreached nodes hang below a cycle; climb until an id repeats.
        seen: list[str] = []
        current_id = node.id
        while current_id not in seen:
            seen.append(current_id)
            current_id = nodes[current_id].meta.parent  # type: ignore[assignment]
        cycle = [nodes[member_id] for member_id in seen[seen.index(current_id):]]
        head = min(cycle, key=lambda member: key(member.meta))
        siblings = nodes[head.meta.parent].children  # type: ignore[index]
        siblings[:] = [child for child in siblings if child is not head]
        roots.append(head)
        reached.update(member.id for member in _walk([head]))
        LOGGER.warning("build_tree: document %r is part of a parent cycle; promoted to root", head.id)


def _sort_siblings(nodes: list[TreeNode], key: SortKey) -> None:
    stack = [nodes]
    while stack:
        siblings = stack.pop()
        siblings.sort(key=lambda node: key(node.meta))
        stack.extend(node.children for node in siblings if node.children)


def _walk(nodes: Iterable[TreeNode]) -> Iterator[TreeNode]:
    stack = list(reversed(list(nodes)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def iter_nodes(forest: Iterable[TreeNode]) -> Iterator[TreeNode]:
    """Yield every node depth-first, parents before children."""

    return _walk(forest)


def find_node(forest: Iterable[TreeNode], document_id: str) -> TreeNode | None:
    for node in _walk(forest):
        if node.meta.id == document_id:
            return node
    return None


def get_ancestors(documents: Iterable[DocumentMeta], document_id: str) -> list[DocumentMeta]:
    """Return the ancestors of ``document_id``, root-most first.

    The walk stops as soon as a parent id repeats, so malformed cyclic data
    yields a truncated chain instead of looping forever.
    """

    by_id: dict[str, DocumentMeta] = {}
    for meta in documents:
        by_id.setdefault(meta.id, meta)
    current = by_id.get(document_id)
    if current is None:
        return []

    ancestors: list[DocumentMeta] = []
    visited = {document_id}
    while current.parent:
        if current.parent in visited:
            LOGGER.debug("get_ancestors: cycle detected at %r", current.parent)
            break
        parent = by_id.get(current.parent)
        if parent is None:
            break
        visited.add(parent.id)
        ancestors.append(parent)
        current = parent
    ancestors.reverse()
    return ancestors


def collect_descendant_ids(node: TreeNode) -> list[str]:
    return [child.id for child in _walk(node.children)]


def flatten(forest: Iterable[TreeNode]) -> list[DocumentMeta]:
    return [node.meta for node in _walk(forest)]


class HierarchyBuilder:
    """Hierarchy operations bound to a configured sort mode."""

    __slots__ = ("_sort_mode",)

    def __init__(self, sort_mode: TreeSortMode | str = TreeSortMode.FOLDER_TITLE) -> None:
        self._sort_mode = TreeSortMode.parse(sort_mode)

    @property
    def sort_mode(self) -> TreeSortMode:
        return self._sort_mode

    def build(self, documents: Iterable[DocumentMeta]) -> list[TreeNode]:
        return build_tree(documents, sort_mode=self._sort_mode)

    def find(self, forest: Iterable[TreeNode], document_id: str) -> TreeNode | None:
        return find_node(forest, document_id)

    def ancestors(self, documents: Iterable[DocumentMeta], document_id: str) -> list[DocumentMeta]:
        return get_ancestors(documents, document_id)
