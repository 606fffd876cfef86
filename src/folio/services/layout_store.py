"""Persistence adapter for per-workspace pane layout records."""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..panes.codec import LayoutError, dumps_layout, loads_layout
from ..panes.layout import PaneLayout

__all__ = ["StorageBackend", "DirectoryStorage", "LayoutStore"]

LOGGER = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal text storage contract supplied by the host application."""

    def read_text(self, name: str) -> str | None:
        """Return the stored text for ``name`` or ``None`` when absent."""

    def write_text(self, name: str, text: str) -> None:
        """Persist ``text`` under ``name``."""


class DirectoryStorage:
    """Stores each record as a file inside ``root`` using atomic replaces."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    def read_text(self, name: str) -> str | None:
        path = self._root / name
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write_text(self, name: str, text: str) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=f".{name}.", suffix=".tmp")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            tmp_path.replace(self._root / name)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise


class LayoutStore:
    """Loads and saves per-workspace session records through a storage backend.

    Layouts live in ``tabs-<workspace>.json`` and favorites in
    ``favorites-<workspace>.json``.
    """

    def __init__(self, storage: StorageBackend) -> None:
        self._storage = storage

    @staticmethod
    def record_name(workspace_id: str, kind: str = "tabs") -> str:
        safe = _UNSAFE_NAME_CHARS.sub("_", workspace_id) or "default"
        return f"{kind}-{safe}.json"

    def load(self, workspace_id: str) -> PaneLayout | None:
        """Return the stored layout, or ``None`` when nothing usable is stored.

        Invalid records are logged and ignored so a corrupted file never
        blocks the session from starting.
        """

        name = self.record_name(workspace_id)
        text = self._storage.read_text(name)
        if text is None:
            LOGGER.debug("LayoutStore.load: no record for workspace=%s", workspace_id)
            return None
        try:
            layout = loads_layout(text)
        except LayoutError as exc:
            LOGGER.warning("LayoutStore.load: ignoring invalid record %s: %s", name, exc)
            return None
        LOGGER.debug(
            "LayoutStore.load: workspace=%s panes=%s active=%s",
            workspace_id,
            layout.leaf_ids(),
            layout.active_pane_id,
        )
        return layout

    def save(self, workspace_id: str, layout: PaneLayout) -> None:
        name = self.record_name(workspace_id)
        self._storage.write_text(name, dumps_layout(layout))
        LOGGER.debug("LayoutStore.save: workspace=%s record=%s", workspace_id, name)

    def load_favorites(self, workspace_id: str) -> dict | None:
        """Return the stored favorites payload for ``workspace_id``, if any."""

        name = self.record_name(workspace_id, "favorites")
        text = self._storage.read_text(name)
        if text is None:
            return None
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            LOGGER.warning("LayoutStore.load_favorites: ignoring invalid record %s: %s", name, exc)
            return None
        return payload if isinstance(payload, dict) else None

    def save_favorites(self, workspace_id: str, payload: dict) -> None:
        name = self.record_name(workspace_id, "favorites")
        self._storage.write_text(name, json.dumps(payload, sort_keys=True))
