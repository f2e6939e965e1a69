"""Command-line entrypoint for ui-inventory."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from .config import AppConfig, load_config
from .derive.inventory import derive_component_inventory
from .derive.signature import GroupingMode
from .derive.styles import derive_style_inventory
from .errors import InventoryError, ProjectNotFoundError
from .export import export_captures, export_filename
from .logging_utils import configure_logging
from .overlay.resolve import apply_overlays
from .overlay.service import OverlayService
from .scoping import CaptureFilter, filter_captures
from .storage.database import DatabaseManager
from .storage.store import CaptureStore

_MODES = [mode.value for mode in GroupingMode]


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="ui-inventory")
    p.add_argument(
        "--config",
        default=os.environ.get("UI_INVENTORY_CONFIG", "ui_inventory.yml"),
        help="Path to config YAML (default: ui_inventory.yml or UI_INVENTORY_CONFIG).",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    inventory = sub.add_parser("inventory", help="List derived components for a project.")
    inventory.add_argument("--project", required=True)
    inventory.add_argument("--mode", choices=_MODES, default=None)
    inventory.add_argument("--search", default="")
    inventory.add_argument("--tag-name", default=None)
    inventory.add_argument("--category", default=None)
    inventory.add_argument("--screenshot-only", action="store_true")
    inventory.add_argument("--json", action="store_true")

    styles = sub.add_parser("styles", help="List repeated style values for a project.")
    styles.add_argument("--project", required=True)
    styles.add_argument("--json", action="store_true")

    captures = sub.add_parser("captures", help="List the newest captures of a session.")
    captures.add_argument("--session", required=True)
    captures.add_argument("--json", action="store_true")

    export = sub.add_parser("export", help="Export captures as JSON or CSV.")
    target = export.add_mutually_exclusive_group(required=True)
    target.add_argument("--project")
    target.add_argument("--session")
    export.add_argument("--format", choices=["json", "csv"], default="json")
    export.add_argument("--out", type=Path, default=None)
    export.add_argument("--mode", choices=_MODES, default=None)
    export.add_argument("--viewer-derived", action="store_true")

    sub.add_parser("doctor", help="Run quick environment/self checks and exit.")
    sub.add_parser("print-config", help="Load config and print resolved values.")
    return p.parse_args(list(argv))


def _open_store(config: AppConfig) -> CaptureStore:
    return CaptureStore(DatabaseManager(config.database))


def _project_captures(store: CaptureStore, project_id: str, config: AppConfig):
    if store.get_project(project_id) is None:
        raise ProjectNotFoundError(f"Unknown project: {project_id}")
    return store.list_captures_scoped(project_id, include_drafts=config.viewer.include_drafts)


def _inventory(config: AppConfig, args: argparse.Namespace) -> int:
    store = _open_store(config)
    mode = GroupingMode(args.mode or config.viewer.grouping_mode)
    captures = filter_captures(
        _project_captures(store, args.project, config),
        CaptureFilter(
            search=args.search,
            screenshot_only=args.screenshot_only,
            tag_name=args.tag_name,
            category=args.category,
        ),
    )
    overlays = OverlayService(store)
    resolved = apply_overlays(
        derive_component_inventory(captures, mode),
        overlays.list_overrides(args.project),
        overlays.list_annotations(args.project),
    )
    if args.json:
        rows = [
            {
                "id": item.id,
                "name": item.display_name,
                "category": item.category,
                "type": item.type,
                "status": item.status,
                "source": item.component.source,
                "capturesCount": item.component.captures_count,
                "notes": item.notes,
                "tags": list(item.tags),
            }
            for item in resolved
        ]
        print(json.dumps(rows, indent=2, ensure_ascii=False))
        return 0
    for item in resolved:
        print(
            f"{item.component.captures_count:>5}  {item.id:<16} {item.category:<11} "
            f"{item.type:<12} {item.status:<10} {item.display_name}"
        )
    return 0


def _styles(config: AppConfig, args: argparse.Namespace) -> int:
    store = _open_store(config)
    entries = derive_style_inventory(_project_captures(store, args.project, config))
    if args.json:
        rows = [
            {
                "id": entry.id,
                "property": entry.property,
                "kind": entry.kind,
                "value": entry.value,
                "token": entry.token,
                "usageCount": entry.usage_count,
                "source": entry.source,
            }
            for entry in entries
        ]
        print(json.dumps(rows, indent=2, ensure_ascii=False))
        return 0
    for entry in entries:
        print(
            f"{entry.usage_count:>5}  {entry.kind:<10} {entry.property:<16} "
            f"{entry.value:<28} {entry.token:<24} {entry.source}"
        )
    return 0


def _captures(config: AppConfig, args: argparse.Namespace) -> int:
    store = _open_store(config)
    limit = config.viewer.capture_list_limit
    captures = store.list_captures_by_session(args.session, limit)
    if len(captures) == limit:
        logger.info("Showing the newest {} captures of session {}", limit, args.session)
    if args.json:
        rows = [
            {
                "id": capture.id,
                "createdAt": capture.created_at,
                "name": capture.display_name,
                "tagName": capture.tag_name,
                "role": capture.role,
                "url": capture.url,
                "hasScreenshot": capture.has_screenshot,
            }
            for capture in captures
        ]
        print(json.dumps(rows, indent=2, ensure_ascii=False))
        return 0
    for capture in captures:
        print(
            f"{capture.id:<24} {capture.tag_name or '':<10} {capture.role or '':<12} "
            f"{capture.display_name}"
        )
    return 0


def _export(config: AppConfig, args: argparse.Namespace) -> int:
    store = _open_store(config)
    session = None
    if args.session:
        session = store.get_session(args.session)
        captures = store.list_captures_by_session(args.session, limit=None)
    else:
        captures = _project_captures(store, args.project, config)
    mode = None
    if args.viewer_derived or config.export.include_viewer_derived:
        mode = GroupingMode(args.mode or config.viewer.grouping_mode)
    out_path = args.out or Path(config.export.output_dir) / export_filename(args.session, args.format)

    def _progress(current: int, total: int) -> None:
        logger.debug("Export progress {}/{}", current, total)

    asyncio.run(
        export_captures(
            config,
            store,
            captures,
            fmt=args.format,
            out_path=out_path,
            session=session,
            grouping_mode=mode,
            on_progress=_progress,
        )
    )
    print(out_path)
    return 0


def _doctor(config: AppConfig) -> int:
    """Cheap sanity checks for the configured store and export directory."""

    ok = True
    try:
        Path(config.export.output_dir).mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Cannot create output_dir={}: {}", config.export.output_dir, exc)
        ok = False
    try:
        store = _open_store(config)
        projects = store.list_projects()
        logger.info("Store OK: {} projects", len(projects))
    except InventoryError as exc:
        logger.error("Store check failed: {}", exc)
        ok = False
    logger.info("Doctor result: {}", "OK" if ok else "FAILED")
    return 0 if ok else 2


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    config_path = Path(args.config)
    config = load_config(config_path)
    configure_logging(config.logging.log_dir, config.logging.level)

    if args.cmd == "print-config":
        print(json.dumps(config.model_dump(mode="json"), indent=2))
        return 0
    if args.cmd == "doctor":
        return _doctor(config)

    handlers = {
        "inventory": _inventory,
        "styles": _styles,
        "captures": _captures,
        "export": _export,
    }
    try:
        return handlers[args.cmd](config, args)
    except ProjectNotFoundError as exc:
        logger.error("{}", exc)
        return 1
    except InventoryError as exc:
        logger.error("Command {} failed: {}", args.cmd, exc)
        return 2
