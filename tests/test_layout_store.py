"""Tests for the per-workspace layout persistence adapter."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from folio.panes.layout import initial_layout
from folio.panes.model import PaneIdAllocator
from folio.services.layout_store import DirectoryStorage, LayoutStore, StorageBackend


class MemoryStorage:
    def __init__(self) -> None:
        self.records: dict[str, str] = {}

    def read_text(self, name: str) -> str | None:
        return self.records.get(name)

    def write_text(self, name: str, text: str) -> None:
        self.records[name] = text


@pytest.fixture
def store(tmp_path: Path) -> LayoutStore:
    return LayoutStore(DirectoryStorage(tmp_path / "data"))


def test_storage_implementations_satisfy_protocol(tmp_path: Path) -> None:
    assert isinstance(DirectoryStorage(tmp_path), StorageBackend)
    assert isinstance(MemoryStorage(), StorageBackend)


def test_record_names_are_sanitized() -> None:
    assert LayoutStore.record_name("work space/1") == "tabs-work_space_1.json"
    assert LayoutStore.record_name("ws", "favorites") == "favorites-ws.json"
    assert LayoutStore.record_name("") == "tabs-default.json"


def test_missing_record_returns_none(store: LayoutStore) -> None:
    assert store.load("nothing") is None
    assert store.load_favorites("nothing") is None


def test_save_then_load(store: LayoutStore, tmp_path: Path) -> None:
    layout = initial_layout().open_tab("a", "A").split_pane("pane-root", "vertical", new_id=PaneIdAllocator())

    store.save("ws", layout)
    restored = store.load("ws")

    assert (tmp_path / "data" / "tabs-ws.json").exists()
    assert restored == layout
    assert not list((tmp_path / "data").glob("*.tmp"))


def test_invalid_record_is_ignored(store: LayoutStore, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    (tmp_path / "data").mkdir()
    (tmp_path / "data" / "tabs-ws.json").write_text('{"paneLayout": 1}', encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        assert store.load("ws") is None

    assert "invalid record" in caplog.text


def test_favorites_round_trip_through_memory_storage() -> None:
    storage = MemoryStorage()
    store = LayoutStore(storage)

    store.save_favorites("ws", {"favorites": ["a"], "recentPages": []})

    assert store.load_favorites("ws") == {"favorites": ["a"], "recentPages": []}
    storage.records["favorites-ws.json"] = "[1, 2]"
    assert store.load_favorites("ws") is None
    storage.records["favorites-ws.json"] = "{nope"
    assert store.load_favorites("ws") is None


def test_overly_nested_record_is_ignored(caplog: pytest.LogCaptureFixture) -> None:
    storage = MemoryStorage()
    depth = 1500
    opening = "".join(
        f'{{"type": "split", "id": "s{index}", "direction": "vertical", "first": {{"type": "leaf", "id": "l{index}"}}, "second": '
        for index in range(depth)
    )
    storage.records["tabs-ws.json"] = (
        '{"activePaneId": "end", "paneLayout": ' + opening + '{"type": "leaf", "id": "end"}' + "}" * (depth + 1)
    )

    with caplog.at_level(logging.WARNING):
        assert LayoutStore(storage).load("ws") is None

    assert "invalid record" in caplog.text
