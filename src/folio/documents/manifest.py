"""Load document metadata manifests from JSON or YAML files."""

from __future__ import annotations

import json
from json import JSONDecodeError
from pathlib import Path
from typing import Any, Iterable, Mapping

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .models import DocumentMeta

__all__ = ["ManifestError", "load_manifest", "parse_manifest", "documents_from_records"]

_YAML_SUFFIXES = {".yaml", ".yml"}


class ManifestError(ValueError):
    """Raised when a document manifest cannot be parsed."""


def load_manifest(path: Path | str) -> list[DocumentMeta]:
    """Read ``path`` and return the document metadata it lists."""

    target = Path(path).expanduser()
    try:
        text = target.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"Unable to read manifest {target}: {exc}") from exc
    fmt = "yaml" if target.suffix.lower() in _YAML_SUFFIXES else "json"
    return parse_manifest(text, fmt=fmt)


def parse_manifest(text: str, *, fmt: str = "json") -> list[DocumentMeta]:
    if fmt == "yaml":
        payload = _parse_yaml(text)
    else:
        try:
            payload = json.loads(text) if text.strip() else []
        except JSONDecodeError as exc:
            raise ManifestError(
                f"{exc.msg} (line {exc.lineno}, column {exc.colno})"
            ) from exc

    if isinstance(payload, Mapping):
        payload = payload.get("documents", [])
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ManifestError("Manifest must contain a list of documents")
    return documents_from_records(payload)


def documents_from_records(records: Iterable[Any]) -> list[DocumentMeta]:
    documents: list[DocumentMeta] = []
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise ManifestError(f"Manifest entry {index} is not a mapping")
        try:
            documents.append(DocumentMeta.from_mapping(record))
        except ValueError as exc:
            raise ManifestError(f"Manifest entry {index}: {exc}") from exc
    return documents


def _parse_yaml(text: str) -> Any:
    parser = YAML(typ="safe")
    parser.allow_duplicate_keys = False
    try:
        return parser.load(text)
    except YAMLError as exc:
        raise ManifestError(f"Invalid YAML manifest: {exc}") from exc
