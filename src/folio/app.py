"""Command line entry point for inspecting manifests and stored layouts."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import types
from dataclasses import asdict
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, Union, get_args, get_origin, get_type_hints

from .documents.hierarchy import HierarchyBuilder, iter_nodes
from .documents.manifest import ManifestError, load_manifest
from .documents.models import TreeNode
from .panes.codec import serialize_layout
from .panes.layout import PaneLayout
from .panes.model import PaneLeaf, PaneNode
from .services.layout_store import DirectoryStorage, LayoutStore
from .services.settings import Settings, SettingsStore
from .workspace.coordinator import WorkspaceCoordinator

_LOGGER = logging.getLogger(__name__)
_PACKAGE_LOGGER = "folio"
_LOG_FILENAME = "folio.log"
_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}


def log_path_for(settings: Settings) -> Path:
    return settings.resolved_data_dir() / "logs" / _LOG_FILENAME


def configure_logging(settings: Settings, *, debug: bool = False, console: bool = True) -> Path | None:
    """Attach a rotating log file under the data directory to the ``folio`` logger.

    The level is DEBUG when ``debug`` or ``settings.debug_logging`` is set and
    WARNING otherwise. Handlers from an earlier call are replaced, so the CLI
    can reconfigure after applying overrides.

    Returns:
        The log file path, or ``None`` when the directory could not be created.
    """

    level = logging.DEBUG if debug or settings.debug_logging else logging.WARNING
    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(level)
    formatter = logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        package_logger.addHandler(console_handler)

    log_path: Path | None = log_path_for(settings)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    except OSError as exc:
        _LOGGER.warning("Logging to file disabled; cannot open %s: %s", log_path, exc)
        log_path = None
    else:
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    _LOGGER.debug("Logging configured (level=%s, file=%s)", logging.getLevelName(level), log_path)
    return log_path


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        settings = active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        settings = Settings()
    return settings


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point invoked by the ``folio`` console script."""

    args = _parse_cli_args(argv)

    settings_path = args.settings_path or os.environ.get("FOLIO_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return 2

    settings = load_settings(resolved_path, store=settings_store, overrides=cli_overrides or None)
    log_path = configure_logging(settings, debug=args.debug)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides, log_path=log_path)
        return 0

    handler = getattr(args, "handler", None)
    if handler is None:
        print("A command is required (tree, ancestors, layout).", file=sys.stderr)
        return 2
    return handler(args, settings)


# ----------------------------------------------------------------------
# Subcommands
# ----------------------------------------------------------------------
def _cmd_tree(args: argparse.Namespace, settings: Settings, stream: TextIO | None = None) -> int:
    destination = stream or sys.stdout
    documents = _load_documents(args.manifest)
    if documents is None:
        return 1
    forest = HierarchyBuilder(args.sort or settings.sort_mode).build(documents)
    for line in _render_forest(forest):
        destination.write(line + "\n")
    return 0


def _cmd_ancestors(args: argparse.Namespace, settings: Settings, stream: TextIO | None = None) -> int:
    destination = stream or sys.stdout
    documents = _load_documents(args.manifest)
    if documents is None:
        return 1
    builder = HierarchyBuilder(settings.sort_mode)
    target = next((meta for meta in documents if meta.id == args.document_id), None)
    if target is None:
        print(f"Unknown document: {args.document_id}", file=sys.stderr)
        return 1
    crumbs = [meta.title for meta in builder.ancestors(documents, args.document_id)]
    crumbs.append(target.title)
    destination.write(" / ".join(crumbs) + "\n")
    return 0


def _cmd_layout(args: argparse.Namespace, settings: Settings, stream: TextIO | None = None) -> int:
    destination = stream or sys.stdout
    data_dir = Path(args.data_dir).expanduser() if args.data_dir else settings.resolved_data_dir()
    coordinator = WorkspaceCoordinator(
        hierarchy=settings.sort_mode,
        layout_store=LayoutStore(DirectoryStorage(data_dir)),
        workspace_id=args.workspace_id,
        recent_limit=settings.recent_limit,
    )
    layout = coordinator.restore_layout()
    if args.json:
        json.dump(serialize_layout(layout), destination, indent=2, sort_keys=True)
        destination.write("\n")
        return 0
    for line in _render_layout(layout):
        destination.write(line + "\n")
    return 0


# ----------------------------------------------------------------------
# Rendering
# ----------------------------------------------------------------------
def _render_forest(forest: list[TreeNode]) -> list[str]:
    depth: dict[str, int] = {}
    lines: list[str] = []
    for node in iter_nodes(forest):
        level = depth.get(node.id, 0)
        for child in node.children:
            depth[child.id] = level + 1
        marker = "/" if node.meta.is_folder else ""
        lines.append(f"{'  ' * level}{node.meta.title}{marker} ({node.id})")
    return lines


def _render_layout(layout: PaneLayout) -> list[str]:
    lines: list[str] = []
    stack: list[tuple[PaneNode, int]] = [(layout.root, 0)]
    while stack:
        node, level = stack.pop()
        indent = "  " * level
        if isinstance(node, PaneLeaf):
            active = " *" if node.id == layout.active_pane_id else ""
            tabs = ", ".join(
                f"[{tab.title}]" if tab.id == node.active_tab_id else tab.title for tab in node.tabs
            )
            lines.append(f"{indent}{node.id}{active}: {tabs or '(empty)'}")
            continue
        lines.append(f"{indent}{node.id} {node.direction.value} {node.ratio:.2f}")
        stack.append((node.second, level + 1))
        stack.append((node.first, level + 1))
    return lines


def _load_documents(manifest: str):
    try:
        return load_manifest(manifest)
    except ManifestError as exc:
        print(f"Invalid manifest {manifest}: {exc}", file=sys.stderr)
        return None


# ----------------------------------------------------------------------
# Argument handling
# ----------------------------------------------------------------------
def _parse_cli_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="folio",
        description="Inspect page hierarchies and persisted pane layouts.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Use an alternate settings.json file.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        metavar="KEY=VALUE",
        help="Override a setting for this invocation (repeatable).",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload and exit.",
    )
    subparsers = parser.add_subparsers(dest="command")

    tree_parser = subparsers.add_parser("tree", help="Print the page tree of a manifest.")
    tree_parser.add_argument("manifest", help="JSON or YAML document manifest.")
    tree_parser.add_argument("--sort", choices=["folder-title", "order"], help="Sibling ordering.")
    tree_parser.set_defaults(handler=_cmd_tree)

    ancestors_parser = subparsers.add_parser("ancestors", help="Print the breadcrumb for a page.")
    ancestors_parser.add_argument("manifest", help="JSON or YAML document manifest.")
    ancestors_parser.add_argument("document_id", metavar="ID", help="Document id.")
    ancestors_parser.set_defaults(handler=_cmd_ancestors)

    layout_parser = subparsers.add_parser("layout", help="Print the stored pane layout of a workspace.")
    layout_parser.add_argument("workspace_id", metavar="WORKSPACE_ID", help="Workspace key.")
    layout_parser.add_argument("--data-dir", metavar="PATH", help="Directory holding layout records.")
    layout_parser.add_argument("--json", action="store_true", help="Emit the serialized layout.")
    layout_parser.set_defaults(handler=_cmd_layout)

    return parser.parse_args(argv)


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    fields = Settings.__dataclass_fields__  # type: ignore[attr-defined]
    type_hints = get_type_hints(Settings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in fields:
            raise ValueError(f"Unknown setting '{key}'.")
        overrides[key] = _coerce_value(type_hints.get(key, str), raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    target = _resolve_annotation(annotation)
    if target is bool:
        lowered = raw_value.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"Expected a boolean value, got '{raw_value}'.")
    if target is int:
        try:
            return int(raw_value)
        except ValueError as exc:
            raise ValueError(f"Expected an integer value, got '{raw_value}'.") from exc
    return raw_value


def _resolve_annotation(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        candidates = [arg for arg in get_args(annotation) if arg is not type(None)]
        return candidates[0] if candidates else str
    return annotation


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    log_path: Path | None = None,
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    output = {
        "settings": asdict(settings),
        "meta": {
            "path": str(store.path),
            "cli_overrides": sorted(overrides.keys()),
            "log_path": str(log_path or ""),
        },
    }
    json.dump(output, destination, indent=2)
    destination.write("\n")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
