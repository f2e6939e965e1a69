"""JSON bundle and CSV export of capture records."""

from __future__ import annotations

import asyncio
import copy
import datetime as dt
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, TypeVar

from .capture.models import CaptureRecord
from .config import AppConfig
from .derive.signature import SIGNATURE_VERSION, GroupingMode, compute_group_key, compute_variant_key
from .errors import ExportInProgressError, StoreError
from .logging_utils import get_logger
from .overlay.models import SessionInfo
from .storage.store import CaptureStore

T = TypeVar("T")

ProgressCallback = Callable[[int, int], None]
RecordFetcher = Callable[[Sequence[CaptureRecord]], Awaitable[list[dict[str, Any]]]]

CSV_HEADERS = (
    "sessionId",
    "captureId",
    "createdAt",
    "url",
    "tagName",
    "role",
    "accessibleName",
    "screenshotBlobId",
    "paddingTop",
    "paddingRight",
    "paddingBottom",
    "paddingLeft",
    "backgroundColorRgba",
    "colorRgba",
    "borderColorRgba",
    "shadowPresence",
    "shadowLayerCount",
)
VIEWER_CSV_HEADERS = (
    "viewer_grouping_mode",
    "viewer_group_key",
    "viewer_variant_key",
    "viewer_signature_version",
)

_log = get_logger("export")


class ExportRunner:
    """Fetch full records in batches and build one export at a time."""

    def __init__(self, batch_size: int = 50) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._batch_size = batch_size
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def run(
        self,
        captures: Sequence[CaptureRecord],
        fetch: RecordFetcher,
        build: Callable[[list[dict[str, Any]]], T],
        on_progress: Optional[ProgressCallback] = None,
    ) -> T:
        if self._running:
            raise ExportInProgressError("An export is already in progress")
        self._running = True
        try:
            total = len(captures)
            _report(on_progress, 0, total)
            records: list[dict[str, Any]] = []
            for start in range(0, total, self._batch_size):
                batch = captures[start : start + self._batch_size]
                records.extend(await fetch(batch))
                _report(on_progress, min(start + self._batch_size, total), total)
                await asyncio.sleep(0)
            return build(records)
        finally:
            self._running = False


def _report(callback: Optional[ProgressCallback], current: int, total: int) -> None:
    if callback is not None:
        callback(current, total)


def store_fetcher(store: CaptureStore, yield_every: int = 10) -> RecordFetcher:
    """Fetch full stored records one by one; unreadable records are skipped."""

    async def _fetch(batch: Sequence[CaptureRecord]) -> list[dict[str, Any]]:
        records = []
        for counter, item in enumerate(batch, start=1):
            try:
                capture = store.get_capture(item.id)
            except StoreError as exc:
                _log.error("Failed to fetch capture {} for export: {}", item.id, exc)
                capture = None
            if capture is not None:
                records.append(dict(capture.payload))
            if counter % yield_every == 0:
                await asyncio.sleep(0)
        return records

    return _fetch


def viewer_derived(capture: CaptureRecord, mode: GroupingMode | str) -> dict[str, Any]:
    mode = GroupingMode(mode)
    return {
        "groupingMode": mode.value,
        "groupKey": compute_group_key(capture, mode),
        "variantKey": compute_variant_key(capture),
        "signatureVersion": SIGNATURE_VERSION,
    }


def clean_record(record: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of ``record`` without ``styles.computed``."""

    cleaned = copy.deepcopy(dict(record))
    styles = cleaned.get("styles")
    if isinstance(styles, dict) and styles.get("computed"):
        del styles["computed"]
    return cleaned


def build_json_bundle(
    records: Sequence[Mapping[str, Any]],
    items: Sequence[CaptureRecord] = (),
    *,
    session: SessionInfo | Mapping[str, Any] | None = None,
    grouping_mode: GroupingMode | str | None = None,
    exported_at: Optional[dt.datetime] = None,
) -> dict[str, Any]:
    """Build ``{exportedAt, session, captures}``.

    ``viewerDerived`` is attached to each record whose id is among ``items``
    when ``grouping_mode`` is given.
    """

    by_id = {item.id: item for item in items}
    captures = []
    for record in records:
        cleaned = clean_record(record)
        item = by_id.get(cleaned.get("id"))
        if grouping_mode is not None and item is not None:
            cleaned["viewerDerived"] = viewer_derived(item, grouping_mode)
        captures.append(cleaned)
    if isinstance(session, SessionInfo):
        session = session.to_record()
    return {
        "exportedAt": _iso_timestamp(exported_at or dt.datetime.now(dt.timezone.utc)),
        "session": dict(session) if session is not None else None,
        "captures": captures,
    }


def dumps_json_bundle(bundle: Mapping[str, Any]) -> str:
    return json.dumps(bundle, indent=2, ensure_ascii=False)


def escape_csv(value: Any) -> str:
    if value is None:
        return ""
    text = _text(value)
    if "," in text or '"' in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def format_rgba(value: Any) -> str:
    if not value:
        return ""
    if isinstance(value, Mapping) and "r" in value:
        return ",".join(_text(value.get(channel)) for channel in ("r", "g", "b", "a"))
    return _text(value)


def csv_row(
    record: Mapping[str, Any],
    item: Optional[CaptureRecord] = None,
    grouping_mode: GroupingMode | str | None = None,
) -> list[str]:
    element = _mapping(record.get("element"))
    styles = _mapping(record.get("styles"))
    prims = _mapping(styles.get("primitives"))
    spacing = _mapping(prims.get("spacing"))
    shadow = _mapping(prims.get("shadow"))
    created_at = record.get("createdAt")
    if created_at is None:
        created_at = _mapping(record.get("conditions")).get("timestamp")
    url = record.get("url")
    if url is None:
        url = _mapping(record.get("page")).get("url")

    fields: list[Any] = [
        record.get("sessionId"),
        record.get("id"),
        "" if created_at is None else created_at,
        "" if url is None else url,
        element.get("tagName"),
        element.get("role"),
        _mapping(element.get("intent")).get("accessibleName"),
        _mapping(record.get("screenshot")).get("screenshotBlobId") or "",
        spacing.get("paddingTop"),
        spacing.get("paddingRight"),
        spacing.get("paddingBottom"),
        spacing.get("paddingLeft"),
        format_rgba(_mapping(prims.get("backgroundColor")).get("rgba")),
        format_rgba(_mapping(prims.get("color")).get("rgba")),
        format_rgba(_mapping(prims.get("borderColor")).get("rgba")),
        shadow.get("shadowPresence"),
        shadow.get("shadowLayerCount"),
    ]
    if grouping_mode is not None:
        if item is not None:
            derived = viewer_derived(item, grouping_mode)
            fields.extend(
                [derived["groupingMode"], derived["groupKey"], derived["variantKey"], "1"]
            )
        else:
            # Keep the row as wide as the header.
            fields.extend(["", "", "", ""])
    return [escape_csv(value) for value in fields]


def build_csv(
    records: Sequence[Mapping[str, Any]],
    items: Sequence[CaptureRecord] = (),
    *,
    grouping_mode: GroupingMode | str | None = None,
) -> str:
    headers = list(CSV_HEADERS)
    if grouping_mode is not None:
        headers.extend(VIEWER_CSV_HEADERS)
    by_id = {item.id: item for item in items}
    lines = [",".join(headers)]
    for record in records:
        row = csv_row(record, by_id.get(record.get("id")), grouping_mode)
        lines.append(",".join(row))
    return "\n".join(lines)


def export_filename(session_id: Optional[str], fmt: str, now: Optional[dt.datetime] = None) -> str:
    stamp = int((now or dt.datetime.now(dt.timezone.utc)).timestamp() * 1000)
    return f"captures-{(session_id or 'project')[:8]}-{stamp}.{fmt}"


async def export_captures(
    config: AppConfig,
    store: CaptureStore,
    captures: Sequence[CaptureRecord],
    *,
    fmt: str,
    out_path: Path,
    session: Optional[SessionInfo] = None,
    grouping_mode: GroupingMode | str | None = None,
    runner: Optional[ExportRunner] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Path:
    """Export ``captures`` as ``json`` or ``csv`` and write the result to ``out_path``."""

    if fmt not in ("json", "csv"):
        raise ValueError(f"Unsupported export format: {fmt}")
    runner = runner or ExportRunner(config.export.batch_size)
    fetch = store_fetcher(store, config.export.yield_every)

    def _build(records: list[dict[str, Any]]) -> str:
        if fmt == "json":
            bundle = build_json_bundle(
                records, captures, session=session, grouping_mode=grouping_mode
            )
            return dumps_json_bundle(bundle)
        return build_csv(records, captures, grouping_mode=grouping_mode)

    content = await runner.run(captures, fetch, _build, on_progress)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(content, encoding="utf-8")
    _log.info("Exported {} captures to {}", len(captures), out_path)
    return out_path


def _iso_timestamp(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    value = value.astimezone(dt.timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}
