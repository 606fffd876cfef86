"""Dataclasses describing document metadata and the derived page hierarchy."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping

__all__ = ["FOLDER_TAG", "DocumentMeta", "TreeNode"]

FOLDER_TAG = "__folder"


def _title_from_id(document_id: str) -> str:
    return document_id.rsplit("/", 1)[-1] or document_id


def _coerce_order(document_id: str, value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"Document {document_id!r} has a non-numeric 'order'")
    try:
        order = float(value)
    except ValueError as exc:
        raise ValueError(f"Document {document_id!r} has a non-numeric 'order'") from exc
    if not math.isfinite(order):
        raise ValueError(f"Document {document_id!r} has a non-finite 'order'")
    return order


@dataclass(slots=True, frozen=True)
class DocumentMeta:
    """Read-only metadata describing a single page in the workspace."""

    id: str
    title: str
    parent: str | None = None
    order: float = 0.0
    tags: tuple[str, ...] = ()

    @property
    def is_folder(self) -> bool:
        return FOLDER_TAG in self.tags

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "DocumentMeta":
        """Build metadata from a loosely-typed record (manifest, store payload)."""

        raw_id = payload.get("id")
        if not isinstance(raw_id, str) or not raw_id:
            raise ValueError("Document record requires a non-empty 'id'")
        title = payload.get("title")
        if not isinstance(title, str) or not title:
            title = _title_from_id(raw_id)
        parent = payload.get("parent")
        if parent is not None and not isinstance(parent, str):
            raise ValueError(f"Document {raw_id!r} has a non-string 'parent'")
        order = _coerce_order(raw_id, payload.get("order"))
        raw_tags = payload.get("tags") or ()
        if isinstance(raw_tags, str):
            raw_tags = (raw_tags,)
        tags = tuple(str(tag) for tag in raw_tags)
        return cls(id=raw_id, title=title, parent=parent or None, order=order, tags=tags)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "parent": self.parent,
            "order": self.order,
            "tags": list(self.tags),
        }


@dataclass(slots=True)
class TreeNode:
    """A page plus its sorted children. Rebuilt from scratch on every change."""

    meta: DocumentMeta
    children: list["TreeNode"] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.meta.id
