"""Serialize and restore the persisted pane layout record.

The wire format mirrors the record stored next to each workspace::

    {"paneLayout": <PaneNode>, "activePaneId": "pane-3"}

Dirty and editing flags describe the in-memory session only, so they are
cleared whenever a record is loaded.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from jsonschema import Draft202012Validator

from .layout import PaneLayout
from .model import PaneLeaf, PaneNode, PaneSplit, SplitDirection, Tab, clamp_ratio

__all__ = [
    "LAYOUT_SCHEMA",
    "LayoutError",
    "serialize_layout",
    "deserialize_layout",
    "dumps_layout",
    "loads_layout",
    "node_to_dict",
]

LOGGER = logging.getLogger(__name__)

MAX_SCHEMA_ERRORS = 5

LAYOUT_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["paneLayout", "activePaneId"],
    "properties": {
        "paneLayout": {"$ref": "#/$defs/node"},
        "activePaneId": {"type": "string"},
    },
    "$defs": {
        "tab": {
            "type": "object",
            "required": ["id"],
            "properties": {
                "id": {"type": "string", "minLength": 1},
                "title": {"type": "string"},
                "isDirty": {"type": "boolean"},
            },
        },
        "leaf": {
            "type": "object",
            "required": ["type", "id"],
            "properties": {
                "type": {"const": "leaf"},
                "id": {"type": "string", "minLength": 1},
                "tabs": {"type": "array", "items": {"$ref": "#/$defs/tab"}},
                "activeTabId": {"type": ["string", "null"]},
                "editing": {"type": "boolean"},
            },
        },
        "split": {
            "type": "object",
            "required": ["type", "id", "direction", "first", "second"],
            "properties": {
                "type": {"const": "split"},
                "id": {"type": "string", "minLength": 1},
                "direction": {"enum": [direction.value for direction in SplitDirection]},
                "ratio": {"type": "number"},
                "first": {"$ref": "#/$defs/node"},
                "second": {"$ref": "#/$defs/node"},
            },
        },
        "node": {"oneOf": [{"$ref": "#/$defs/leaf"}, {"$ref": "#/$defs/split"}]},
    },
}

_VALIDATOR = Draft202012Validator(LAYOUT_SCHEMA)


class LayoutError(ValueError):
    """Raised when a persisted layout record cannot be restored."""


# ----------------------------------------------------------------------
# Encoding
# ----------------------------------------------------------------------
def node_to_dict(node: PaneNode) -> dict[str, Any]:
    encoded: list[dict[str, Any]] = []
    pending: list[tuple[PaneNode, bool]] = [(node, False)]
    while pending:
        current, children_done = pending.pop()
        if isinstance(current, PaneLeaf):
            encoded.append(
                {
                    "type": "leaf",
                    "id": current.id,
                    "tabs": [{"id": tab.id, "title": tab.title, "isDirty": tab.is_dirty} for tab in current.tabs],
                    "activeTabId": current.active_tab_id,
                    "editing": current.editing,
                }
            )
        elif children_done:
            second = encoded.pop()
            first = encoded.pop()
            encoded.append(
                {
                    "type": "split",
                    "id": current.id,
                    "direction": current.direction.value,
                    "ratio": current.ratio,
                    "first": first,
                    "second": second,
                }
            )
        else:
            pending.extend(((current, True), (current.second, False), (current.first, False)))
    return encoded[0]


def serialize_layout(layout: PaneLayout) -> dict[str, Any]:
    return {"paneLayout": node_to_dict(layout.root), "activePaneId": layout.active_pane_id}


def dumps_layout(layout: PaneLayout) -> str:
    try:
        return json.dumps(serialize_layout(layout), sort_keys=True)
    except RecursionError as exc:
        raise LayoutError("Layout is nested too deeply to encode") from exc


# ----------------------------------------------------------------------
# Decoding
# ----------------------------------------------------------------------
def deserialize_layout(payload: Mapping[str, Any]) -> PaneLayout:
    """Validate ``payload`` and rebuild the layout with session flags cleared."""

    _validate(payload)
    root = _node_from_dict(payload["paneLayout"])
    seen: set[str] = set()
    for pane_id in _iter_ids(root):
        if pane_id in seen:
            raise LayoutError(f"Duplicate pane id {pane_id!r} in layout")
        seen.add(pane_id)
    return PaneLayout(root=root, active_pane_id=payload["activePaneId"])


def loads_layout(text: str) -> PaneLayout:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LayoutError(f"Layout record is not valid JSON: {exc.msg} (line {exc.lineno})") from exc
    except RecursionError as exc:
        raise LayoutError("Layout record is nested too deeply") from exc
    return deserialize_layout(payload)


def _validate(payload: Any) -> None:
    messages: list[str] = []
    try:
        for issue in _VALIDATOR.iter_errors(payload):
            path = "/".join(str(part) for part in issue.absolute_path)
            messages.append(f"{path}: {issue.message}" if path else issue.message)
            if len(messages) >= MAX_SCHEMA_ERRORS:
                break
    except RecursionError as exc:
        raise LayoutError("Layout record is nested too deeply to validate") from exc
    if messages:
        raise LayoutError("Invalid layout record: " + "; ".join(messages))


def _node_from_dict(data: Mapping[str, Any]) -> PaneNode:
    built: list[PaneNode] = []
    pending: list[tuple[Mapping[str, Any], bool]] = [(data, False)]
    while pending:
        current, children_done = pending.pop()
        if current["type"] != "split":
            built.append(_leaf_from_dict(current))
        elif children_done:
            second = built.pop()
            first = built.pop()
            built.append(
                PaneSplit(
                    id=current["id"],
                    direction=SplitDirection(current["direction"]),
                    ratio=clamp_ratio(current.get("ratio", 0.5)),
                    first=first,
                    second=second,
                )
            )
        else:
            pending.extend(((current, True), (current["second"], False), (current["first"], False)))
    return built[0]


def _leaf_from_dict(data: Mapping[str, Any]) -> PaneLeaf:
    tabs: list[Tab] = []
    tab_ids: set[str] = set()
    for entry in data.get("tabs", []):
        tab_id = entry["id"]
        if tab_id in tab_ids:
            LOGGER.debug("Dropping duplicate tab %s in pane %s", tab_id, data["id"])
            continue
        tab_ids.add(tab_id)
        tabs.append(Tab(id=tab_id, title=entry.get("title", tab_id), is_dirty=False))

    active = data.get("activeTabId")
    if active is not None and active not in tab_ids:
        active = tabs[0].id if tabs else None
    return PaneLeaf(id=data["id"], tabs=tuple(tabs), active_tab_id=active, editing=False)


def _iter_ids(node: PaneNode):
    stack: list[PaneNode] = [node]
    while stack:
        current = stack.pop()
        yield current.id
        if isinstance(current, PaneSplit):
            stack.extend((current.first, current.second))
