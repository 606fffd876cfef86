"""Test helpers shared across modules."""

from __future__ import annotations

from folio.documents.models import FOLDER_TAG, DocumentMeta
from folio.panes.model import PaneLeaf, Tab


def make_doc(
    doc_id: str,
    title: str | None = None,
    parent: str | None = None,
    *,
    folder: bool = False,
    order: float = 0,
) -> DocumentMeta:
    return DocumentMeta(
        id=doc_id,
        title=title or doc_id.rsplit("/", 1)[-1],
        parent=parent,
        order=order,
        tags=(FOLDER_TAG,) if folder else (),
    )


def make_leaf(pane_id: str, *tab_ids: str, active: str | None = None, dirty: tuple[str, ...] = ()) -> PaneLeaf:
    tabs = tuple(Tab(id=tab_id, title=tab_id.upper(), is_dirty=tab_id in dirty) for tab_id in tab_ids)
    if active is None and tab_ids:
        active = tab_ids[0]
    return PaneLeaf(id=pane_id, tabs=tabs, active_tab_id=active)
