"""Workspace coordinator: the single owner of documents, layout and favorites.

All mutations go through :meth:`WorkspaceCoordinator.dispatch` (for layout
commands) or the document methods, each of which runs under one re-entrant
lock. Views learn about changes from the :class:`~folio.workspace.events.EventBus`
rather than by holding references into coordinator state.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import Callable, Iterable, Sequence

from ..documents.hierarchy import (
    HierarchyBuilder,
    TreeSortMode,
    collect_descendant_ids,
    find_node,
    get_ancestors,
)
from ..documents.models import DocumentMeta, TreeNode
from ..panes.codec import LayoutError
from ..panes.layout import PaneLayout, initial_layout
from ..panes.model import PaneIdAllocator, SplitDirection
from ..services.layout_store import LayoutStore
from .commands import (
    ClosePane,
    CloseTab,
    CloseTabsMatching,
    LayoutCommand,
    OpenTab,
    ReplaceTabId,
    SelectTab,
    SetActivePane,
    SetTabDirty,
    SplitPane,
)
from .events import (
    ActiveDocumentChanged,
    ActivePaneChanged,
    DocumentsChanged,
    EventBus,
    LayoutChanged,
    TabsEvicted,
    WorkspaceRestored,
)
from .favorites import DEFAULT_RECENT_LIMIT, FavoritesState

__all__ = ["WorkspaceCoordinator"]

LOGGER = logging.getLogger(__name__)

DEFAULT_WORKSPACE_ID = "default"


class WorkspaceCoordinator:
    """Owns the document forest, the pane layout and favorites for one workspace.

    Args:
        event_bus: Bus that receives change notifications. A private bus is
            created when omitted.
        hierarchy: Builder (or sort mode) used to derive the forest.
        layout_store: Optional persistence for the layout and favorites.
        workspace_id: Key under which the layout is persisted.
        recent_limit: Maximum number of recent pages kept.
        layout: Starting layout; defaults to a single empty root pane.
    """

    def __init__(
        self,
        *,
        event_bus: EventBus | None = None,
        hierarchy: HierarchyBuilder | TreeSortMode | str | None = None,
        layout_store: LayoutStore | None = None,
        workspace_id: str = DEFAULT_WORKSPACE_ID,
        recent_limit: int = DEFAULT_RECENT_LIMIT,
        layout: PaneLayout | None = None,
    ) -> None:
        if not isinstance(hierarchy, HierarchyBuilder):
            hierarchy = HierarchyBuilder(hierarchy or TreeSortMode.FOLDER_TITLE)
        self._bus = event_bus or EventBus()
        self._hierarchy = hierarchy
        self._store = layout_store
        self._workspace_id = workspace_id
        self._recent_limit = recent_limit
        self._lock = threading.RLock()
        self._documents: tuple[DocumentMeta, ...] = ()
        self._forest: list[TreeNode] = []
        self._documents_loaded = False
        self._layout = layout or initial_layout()
        self._favorites = FavoritesState()
        self._allocator = PaneIdAllocator()
        self._allocator.observe(self._layout.root)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def workspace_id(self) -> str:
        return self._workspace_id

    @property
    def documents(self) -> tuple[DocumentMeta, ...]:
        with self._lock:
            return self._documents

    @property
    def forest(self) -> list[TreeNode]:
        with self._lock:
            return list(self._forest)

    @property
    def layout(self) -> PaneLayout:
        with self._lock:
            return self._layout

    @property
    def active_pane_id(self) -> str:
        return self.layout.active_pane_id

    @property
    def active_doc_id(self) -> str | None:
        return self.layout.active_doc_id

    @property
    def favorites(self) -> FavoritesState:
        with self._lock:
            return self._favorites

    def find_node(self, document_id: str) -> TreeNode | None:
        with self._lock:
            return find_node(self._forest, document_id)

    def ancestors(self, document_id: str) -> list[DocumentMeta]:
        """Breadcrumb trail for ``document_id``, root-most first."""

        with self._lock:
            return get_ancestors(self._documents, document_id)

    def get_document(self, document_id: str) -> DocumentMeta | None:
        with self._lock:
            for meta in self._documents:
                if meta.id == document_id:
                    return meta
        return None

    # ------------------------------------------------------------------
    # Layout commands
    # ------------------------------------------------------------------
    def dispatch(self, command: LayoutCommand) -> PaneLayout:
        """Apply ``command`` to the current layout and publish what changed.

        Returns:
            The layout after the command. No events are published when the
            command was a no-op.
        """

        with self._lock:
            previous = self._layout
            updated = command.apply(previous, id_factory=self._allocator)
            if updated is previous:
                LOGGER.debug("dispatch: %s was a no-op", command.name)
                return previous
            self._layout = updated
            LOGGER.debug(
                "dispatch: %s active_pane=%s panes=%s",
                command.name,
                updated.active_pane_id,
                updated.leaf_ids(),
            )
            self._publish_layout_events(command.name, previous, updated)
            return updated

    def dispatch_all(self, commands: Iterable[LayoutCommand]) -> PaneLayout:
        with self._lock:
            for command in commands:
                self.dispatch(command)
            return self._layout

    def open_document(self, document_id: str, title: str | None = None) -> PaneLayout:
        """Open ``document_id`` in the active pane and record it as recently visited."""

        with self._lock:
            if title is None:
                meta = self.get_document(document_id)
                title = meta.title if meta is not None else document_id
            layout = self.dispatch(OpenTab(doc_id=document_id, title=title))
            self._favorites = self._favorites.add_recent_page(
                document_id, title, limit=self._recent_limit
            )
            return layout

    def select_tab(self, pane_id: str, tab_id: str) -> PaneLayout:
        return self.dispatch(SelectTab(pane_id=pane_id, tab_id=tab_id))

    def close_tab(self, pane_id: str, tab_id: str) -> PaneLayout:
        return self.dispatch(CloseTab(pane_id=pane_id, tab_id=tab_id))

    def split_pane(
        self, pane_id: str | None = None, direction: SplitDirection | str = SplitDirection.HORIZONTAL
    ) -> PaneLayout:
        with self._lock:
            target = pane_id or self._layout.active_pane_id
            return self.dispatch(SplitPane(pane_id=target, direction=SplitDirection(direction)))

    def close_pane(self, pane_id: str) -> PaneLayout:
        return self.dispatch(ClosePane(pane_id=pane_id))

    def set_active_pane(self, pane_id: str) -> PaneLayout:
        return self.dispatch(SetActivePane(pane_id=pane_id))

    def set_tab_dirty(self, tab_id: str, dirty: bool) -> PaneLayout:
        return self.dispatch(SetTabDirty(tab_id=tab_id, dirty=dirty))

    def toggle_favorite(self, document_id: str) -> bool:
        """Flip the favorite flag and return whether the page is now a favorite."""

        with self._lock:
            self._favorites = self._favorites.toggle_favorite(document_id)
            return self._favorites.is_favorite(document_id)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------
    def set_documents(self, documents: Iterable[DocumentMeta]) -> list[TreeNode]:
        """Replace the document collection and rebuild the forest.

        Tabs for documents missing from the new collection are closed in
        every pane, whether they came from a restored layout or the document
        was removed by the store.

        Emits:
            DocumentsChanged, and TabsEvicted when open tabs referenced
            documents that no longer exist.
        """

        with self._lock:
            previous_ids = {meta.id for meta in self._documents}
            self._replace_documents(tuple(documents))
            self._documents_loaded = True
            dropped = previous_ids - {meta.id for meta in self._documents}
            if dropped:
                self._favorites = self._favorites.prune(dropped)
            self._evict_unknown_tabs()
            return list(self._forest)

    def delete_document(self, document_id: str) -> tuple[str, ...]:
        """Remove ``document_id`` and everything beneath it.

        Descendants are taken from the forest and from the ``<id>/`` path
        prefix, so path-named children are removed even when their parent
        pointer is missing.

        Returns:
            The removed document ids, sorted.
        """

        prefix = f"{document_id}/"

        def doomed(candidate: str) -> bool:
            return candidate == document_id or candidate.startswith(prefix)

        with self._lock:
            removed = {document_id}
            node = find_node(self._forest, document_id)
            if node is not None:
                removed.update(collect_descendant_ids(node))
            removed.update(meta.id for meta in self._documents if doomed(meta.id))
            known = {meta.id for meta in self._documents}
            if not removed & known:
                LOGGER.debug("delete_document: unknown document_id=%s", document_id)

            def matches(tab_id: str) -> bool:
                return tab_id in removed or doomed(tab_id)

            open_ids = {tab_id for tab_id in self._layout.open_doc_ids() if matches(tab_id)}
            self._replace_documents(tuple(meta for meta in self._documents if meta.id not in removed))
            self.dispatch(CloseTabsMatching(predicate=matches))
            self._favorites = self._favorites.prune(removed | open_ids)
            evicted = tuple(sorted(removed | open_ids))
            LOGGER.debug("delete_document: id=%s removed=%s", document_id, evicted)
            self._bus.publish(TabsEvicted(document_ids=evicted))
            return evicted

    def rename_document(self, old_id: str, new_id: str, title: str | None = None) -> bool:
        """Give a document a new id and title, retargeting children and tabs."""

        with self._lock:
            current = self.get_document(old_id)
            if current is None:
                LOGGER.warning("rename_document: unknown document_id=%s", old_id)
                return False
            if new_id != old_id and self.get_document(new_id) is not None:
                LOGGER.warning("rename_document: %s already exists; refusing to rename %s", new_id, old_id)
                return False
            new_title = title or current.title

            def rewrite(meta: DocumentMeta) -> DocumentMeta:
                if meta.id == old_id:
                    return dataclasses.replace(meta, id=new_id, title=new_title)
                if meta.parent == old_id:
                    return dataclasses.replace(meta, parent=new_id)
                return meta

            self._replace_documents(tuple(rewrite(meta) for meta in self._documents))
            self.dispatch(ReplaceTabId(old_id=old_id, new_id=new_id, new_title=new_title))
            self._favorites = self._favorites.rename(old_id, new_id, new_title)
            return True

    def move_document(self, document_id: str, new_parent: str | None) -> bool:
        """Reparent ``document_id``; ``None`` moves it to the top level.

        Moves that would make a document its own ancestor are refused.
        """

        with self._lock:
            current = self.get_document(document_id)
            if current is None:
                LOGGER.warning("move_document: unknown document_id=%s", document_id)
                return False
            if new_parent is not None:
                if self.get_document(new_parent) is None:
                    LOGGER.warning("move_document: unknown parent %s for %s", new_parent, document_id)
                    return False
                lineage = {meta.id for meta in get_ancestors(self._documents, new_parent)}
                if new_parent == document_id or document_id in lineage:
                    LOGGER.warning(
                        "move_document: moving %s under %s would create a cycle",
                        document_id,
                        new_parent,
                    )
                    return False
            if current.parent == new_parent:
                return True
            moved = dataclasses.replace(current, parent=new_parent)
            self._replace_documents(
                tuple(moved if meta.id == document_id else meta for meta in self._documents)
            )
            return True

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def restore_layout(self) -> PaneLayout:
        """Load the persisted layout and favorites for this workspace.

        A missing or unreadable record leaves the session on the initial
        layout. Tabs that point at unknown documents are evicted as soon as
        the document collection is known.
        """

        with self._lock:
            restored: PaneLayout | None = None
            if self._store is not None:
                restored = self._store.load(self._workspace_id)
                self._favorites = FavoritesState.from_payload(
                    self._store.load_favorites(self._workspace_id)
                )
            if restored is None:
                LOGGER.warning(
                    "restore_layout: no usable layout for workspace=%s; starting fresh",
                    self._workspace_id,
                )
                restored = initial_layout()
            previous = self._layout
            self._layout = restored
            self._allocator.observe(restored.root)
            self._bus.publish(
                WorkspaceRestored(
                    workspace_id=self._workspace_id,
                    pane_count=len(restored.leaf_ids()),
                    active_pane_id=restored.active_pane_id,
                )
            )
            if previous.active_doc_id != restored.active_doc_id:
                self._bus.publish(ActiveDocumentChanged(document_id=restored.active_doc_id))
            if self._documents_loaded:
                self._evict_unknown_tabs()
            return self._layout

    def persist_layout(self) -> bool:
        """Write the layout and favorites; returns ``False`` if the write failed."""

        with self._lock:
            if self._store is None:
                LOGGER.debug("persist_layout: no layout store configured")
                return False
            try:
                self._store.save(self._workspace_id, self._layout)
                self._store.save_favorites(self._workspace_id, self._favorites.to_payload())
            except (OSError, LayoutError) as exc:
                LOGGER.warning("Failed to persist layout for workspace %s: %s", self._workspace_id, exc)
                return False
            return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _replace_documents(self, documents: Sequence[DocumentMeta]) -> None:
        self._documents = tuple(documents)
        self._forest = self._hierarchy.build(self._documents)
        LOGGER.debug(
            "documents rebuilt: count=%d roots=%d", len(self._documents), len(self._forest)
        )
        self._bus.publish(
            DocumentsChanged(document_count=len(self._documents), root_count=len(self._forest))
        )

    def _evict_unknown_tabs(self) -> None:
        known = {meta.id for meta in self._documents}
        unknown = tuple(sorted(self._layout.open_doc_ids() - known))
        if not unknown:
            return
        stale = set(unknown)
        predicate: Callable[[str], bool] = stale.__contains__
        self.dispatch(CloseTabsMatching(predicate=predicate))
        LOGGER.info("Evicted %d tab(s) for unknown documents", len(unknown))
        self._bus.publish(TabsEvicted(document_ids=unknown))

    def _publish_layout_events(self, command: str, previous: PaneLayout, updated: PaneLayout) -> None:
        self._bus.publish(
            LayoutChanged(
                command=command,
                active_pane_id=updated.active_pane_id,
                pane_count=len(updated.leaf_ids()),
            )
        )
        if previous.active_pane_id != updated.active_pane_id:
            self._bus.publish(
                ActivePaneChanged(pane_id=updated.active_pane_id, previous_pane_id=previous.active_pane_id)
            )
        if previous.active_doc_id != updated.active_doc_id:
            self._bus.publish(ActiveDocumentChanged(document_id=updated.active_doc_id))
