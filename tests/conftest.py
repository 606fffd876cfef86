"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from helpers import make_doc

from folio.documents.models import DocumentMeta
from folio.services import settings as settings_module

_FOLIO_ENV_VARS = (
    "FOLIO_TREE_SORT",
    "FOLIO_DEBUG_LOGGING",
    "FOLIO_DATA_DIR",
    "FOLIO_RECENT_LIMIT",
    "FOLIO_SETTINGS_PATH",
)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    for name in _FOLIO_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings_module, "_SETTINGS_DIR", tmp_path / "home")
    package_logger = logging.getLogger("folio")
    level = package_logger.level
    yield
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(level)


@pytest.fixture
def sample_documents() -> list[DocumentMeta]:
    """A small wiki: two folders, nested pages, and one orphan."""

    return [
        make_doc("notes", "Notes", folder=True),
        make_doc("notes/zebra", "Zebra", "notes"),
        make_doc("notes/apple", "apple", "notes"),
        make_doc("notes/apple/seeds", "Seeds", "notes/apple"),
        make_doc("journal", "Journal", folder=True),
        make_doc("journal/monday", "Monday", "journal"),
        make_doc("readme", "Readme"),
        make_doc("orphan", "Orphan", "missing-parent"),
    ]
