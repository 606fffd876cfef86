"""Tests for the settings persistence layer."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from folio.documents.hierarchy import TreeSortMode
from folio.services.settings import Settings, SettingsStore, default_data_dir


def test_load_returns_defaults_when_file_missing(tmp_path: Path) -> None:
    settings = SettingsStore(tmp_path / "settings.json").load()

    assert settings == Settings()
    assert settings.sort_mode is TreeSortMode.FOLDER_TITLE
    assert settings.resolved_data_dir() == default_data_dir()


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "settings.json"
    saved = Settings(tree_sort="order", debug_logging=True, data_dir=str(tmp_path), recent_limit=5)

    SettingsStore(path).save(saved)
    reloaded = SettingsStore(path).load()

    assert reloaded == saved
    assert json.loads(path.read_text(encoding="utf-8"))["version"] == 1
    assert not path.with_suffix(".tmp").exists()


def test_unknown_fields_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"tree_sort": "order", "theme": "dark"}), encoding="utf-8")

    settings = SettingsStore(path).load()

    assert settings.tree_sort == "order"


@pytest.mark.parametrize("body", ["{not json", "[1, 2, 3]"])
def test_invalid_payload_falls_back_to_defaults(tmp_path: Path, body: str, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "settings.json"
    path.write_text(body, encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        settings = SettingsStore(path).load()

    assert settings == Settings()
    assert str(path) in caplog.text


class TestOverrides:
    def test_cli_overrides_apply(self, tmp_path: Path) -> None:
        settings = SettingsStore(tmp_path / "settings.json").load(overrides={"recent_limit": 3, "bogus": 1})

        assert settings.recent_limit == 3

    def test_environment_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FOLIO_TREE_SORT", "order")
        monkeypatch.setenv("FOLIO_DEBUG_LOGGING", "yes")
        monkeypatch.setenv("FOLIO_DATA_DIR", str(tmp_path / "data"))
        monkeypatch.setenv("FOLIO_RECENT_LIMIT", "7")

        settings = SettingsStore(tmp_path / "settings.json").load(overrides={"recent_limit": 3})

        assert settings.sort_mode is TreeSortMode.ORDER
        assert settings.debug_logging is True
        assert settings.resolved_data_dir() == tmp_path / "data"
        assert settings.recent_limit == 7

    def test_invalid_integer_environment_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setenv("FOLIO_RECENT_LIMIT", "many")

        with caplog.at_level(logging.WARNING):
            settings = SettingsStore(tmp_path / "settings.json").load()

        assert settings.recent_limit == 20
        assert "FOLIO_RECENT_LIMIT" in caplog.text

    def test_unknown_sort_mode_falls_back(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("FOLIO_TREE_SORT", "random")

        settings = SettingsStore(tmp_path / "settings.json").load()

        assert settings.tree_sort == "random"
        assert settings.sort_mode is TreeSortMode.FOLDER_TITLE
