"""Tests for JSON and YAML document manifests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from folio.documents.manifest import ManifestError, load_manifest, parse_manifest
from folio.documents.models import FOLDER_TAG, DocumentMeta


def test_load_json_list(tmp_path: Path) -> None:
    path = tmp_path / "docs.json"
    path.write_text(
        json.dumps(
            [
                {"id": "notes", "title": "Notes", "tags": [FOLDER_TAG]},
                {"id": "notes/today", "parent": "notes", "order": 2},
            ]
        ),
        encoding="utf-8",
    )

    documents = load_manifest(path)

    assert documents == [
        DocumentMeta(id="notes", title="Notes", tags=(FOLDER_TAG,)),
        DocumentMeta(id="notes/today", title="today", parent="notes", order=2),
    ]
    assert documents[0].is_folder


def test_load_yaml_documents_key(tmp_path: Path) -> None:
    path = tmp_path / "docs.yaml"
    path.write_text(
        "documents:\n"
        "  - id: home\n"
        "    title: Home\n"
        "  - id: home/todo\n"
        "    parent: home\n"
        "    tags: __folder\n",
        encoding="utf-8",
    )

    documents = load_manifest(path)

    assert [meta.id for meta in documents] == ["home", "home/todo"]
    assert documents[1].tags == (FOLDER_TAG,)


def test_empty_manifests_yield_no_documents() -> None:
    assert parse_manifest("") == []
    assert parse_manifest("", fmt="yaml") == []
    assert parse_manifest('{"documents": []}') == []


class TestManifestErrors:
    """Malformed manifests raise ManifestError with a useful message."""

    def test_invalid_json(self) -> None:
        with pytest.raises(ManifestError, match="line 1"):
            parse_manifest("[{")

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ManifestError, match="Invalid YAML"):
            parse_manifest("- id: [unclosed", fmt="yaml")

    def test_duplicate_yaml_keys(self) -> None:
        with pytest.raises(ManifestError):
            parse_manifest("- id: a\n  id: b\n", fmt="yaml")

    def test_scalar_payload(self) -> None:
        with pytest.raises(ManifestError, match="list of documents"):
            parse_manifest('"just a string"')

    def test_entry_without_id(self) -> None:
        with pytest.raises(ManifestError, match="entry 1"):
            parse_manifest('[{"id": "ok"}, {"title": "No id"}]')

    def test_entry_not_a_mapping(self) -> None:
        with pytest.raises(ManifestError, match="not a mapping"):
            parse_manifest('["page"]')

    def test_non_numeric_order(self) -> None:
        with pytest.raises(ManifestError, match="order"):
            parse_manifest('[{"id": "a", "order": "first"}]')

    @pytest.mark.parametrize("value", ["true", "NaN", "Infinity", "[1]"])
    def test_order_rejects_booleans_and_non_finite_numbers(self, value: str) -> None:
        with pytest.raises(ManifestError, match="order"):
            parse_manifest(f'[{{"id": "a", "order": {value}}}]')

    def test_fractional_order_is_preserved(self) -> None:
        (meta,) = parse_manifest('[{"id": "a", "order": 1.25}]', fmt="json")

        assert meta.order == 1.25

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="Unable to read"):
            load_manifest(tmp_path / "absent.json")
