"""Tests for the persisted layout record format."""

from __future__ import annotations

import json

import pytest
from helpers import make_leaf

from folio.panes.codec import LayoutError, deserialize_layout, dumps_layout, loads_layout, serialize_layout
from folio.panes.layout import PaneLayout, initial_layout
from folio.panes.model import MAX_RATIO, PaneLeaf, PaneSplit, SplitDirection


@pytest.fixture
def layout() -> PaneLayout:
    first = make_leaf("pane-1", "a", "b", active="b", dirty=("a",))
    second = PaneLeaf(id="pane-2", tabs=first.tabs, active_tab_id="a", editing=True)
    root = PaneSplit(id="pane-3", direction=SplitDirection.VERTICAL, first=first, second=second, ratio=0.3)
    return PaneLayout(root=root, active_pane_id="pane-2")


class TestSerialize:
    def test_wire_shape(self, layout: PaneLayout) -> None:
        payload = serialize_layout(layout)

        assert payload["activePaneId"] == "pane-2"
        node = payload["paneLayout"]
        assert node["type"] == "split"
        assert node["direction"] == "vertical"
        assert node["ratio"] == 0.3
        assert node["first"] == {
            "type": "leaf",
            "id": "pane-1",
            "tabs": [
                {"id": "a", "title": "A", "isDirty": True},
                {"id": "b", "title": "B", "isDirty": False},
            ],
            "activeTabId": "b",
            "editing": False,
        }

    def test_dumps_is_json(self, layout: PaneLayout) -> None:
        assert json.loads(dumps_layout(layout)) == serialize_layout(layout)


class TestDeserialize:
    def test_round_trip_clears_session_flags(self, layout: PaneLayout) -> None:
        restored = loads_layout(dumps_layout(layout))

        assert restored.active_pane_id == "pane-2"
        assert restored.leaf_ids() == ["pane-1", "pane-2"]
        assert restored.root.ratio == 0.3
        for leaf_id in restored.leaf_ids():
            leaf = restored.find_leaf(leaf_id)
            assert not leaf.editing
            assert not any(tab.is_dirty for tab in leaf.tabs)
        assert restored.find_leaf("pane-1").active_tab_id == "b"

    def test_initial_layout_round_trip(self) -> None:
        assert loads_layout(dumps_layout(initial_layout())) == initial_layout()

    def test_ratio_is_clamped(self) -> None:
        payload = serialize_layout(PaneLayout(
            root=PaneSplit(id="s", direction="horizontal", first=PaneLeaf("x"), second=PaneLeaf("y")),
            active_pane_id="x",
        ))
        payload["paneLayout"]["ratio"] = 9

        assert deserialize_layout(payload).root.ratio == MAX_RATIO

    def test_missing_tab_title_defaults_to_id(self) -> None:
        payload = {
            "paneLayout": {"type": "leaf", "id": "pane-root", "tabs": [{"id": "notes/today"}]},
            "activePaneId": "pane-root",
        }

        restored = deserialize_layout(payload)

        assert restored.root.tabs[0].title == "notes/today"
        assert restored.root.active_tab_id is None

    def test_repairs_dangling_references(self) -> None:
        payload = {
            "paneLayout": {
                "type": "leaf",
                "id": "pane-root",
                "tabs": [{"id": "a", "title": "A"}, {"id": "a", "title": "dup"}, {"id": "b", "title": "B"}],
                "activeTabId": "gone",
            },
            "activePaneId": "pane-7",
        }

        restored = deserialize_layout(payload)

        assert restored.root.tab_ids == ("a", "b")
        assert restored.root.active_tab_id == "a"
        assert restored.active_pane_id == "pane-root"


class TestInvalidRecords:
    def test_not_json(self) -> None:
        with pytest.raises(LayoutError, match="not valid JSON"):
            loads_layout("{oops")

    def test_missing_keys(self) -> None:
        with pytest.raises(LayoutError, match="activePaneId"):
            deserialize_layout({"paneLayout": {"type": "leaf", "id": "pane-root"}})

    def test_unknown_node_type(self) -> None:
        with pytest.raises(LayoutError):
            deserialize_layout({"paneLayout": {"type": "grid", "id": "x"}, "activePaneId": "x"})

    def test_bad_direction(self) -> None:
        payload = {
            "paneLayout": {
                "type": "split",
                "id": "s",
                "direction": "diagonal",
                "first": {"type": "leaf", "id": "a"},
                "second": {"type": "leaf", "id": "b"},
            },
            "activePaneId": "a",
        }

        with pytest.raises(LayoutError):
            deserialize_layout(payload)

    def test_duplicate_pane_ids(self) -> None:
        payload = {
            "paneLayout": {
                "type": "split",
                "id": "s",
                "direction": "horizontal",
                "first": {"type": "leaf", "id": "a"},
                "second": {"type": "leaf", "id": "a"},
            },
            "activePaneId": "a",
        }

        with pytest.raises(LayoutError, match="Duplicate pane id"):
            deserialize_layout(payload)

    def test_layout_error_is_value_error(self) -> None:
        assert issubclass(LayoutError, ValueError)


class TestDeepLayouts:
    DEPTH = 1500

    def test_serialize_deep_layout(self) -> None:
        root: PaneLeaf | PaneSplit = PaneLeaf(id="end")
        for index in range(self.DEPTH):
            root = PaneSplit(
                id=f"s{index}", direction=SplitDirection.HORIZONTAL, first=PaneLeaf(id=f"l{index}"), second=root
            )

        node = serialize_layout(PaneLayout(root=root, active_pane_id="end"))["paneLayout"]
        depth = 0
        while node["type"] == "split":
            assert node["first"]["type"] == "leaf"
            node = node["second"]
            depth += 1

        assert depth == self.DEPTH
        assert node["id"] == "end"

    def test_overly_nested_record_raises_layout_error(self) -> None:
        opening = "".join(
            f'{{"type": "split", "id": "s{index}", "direction": "horizontal", '
            f'"first": {{"type": "leaf", "id": "l{index}"}}, "second": '
            for index in range(self.DEPTH)
        )
        text = '{"activePaneId": "end", "paneLayout": ' + opening + '{"type": "leaf", "id": "end"}' + "}" * (self.DEPTH + 1)

        with pytest.raises(LayoutError, match="nested too deeply"):
            loads_layout(text)
