"""Adapt stored capture payloads of every schema version to ``CaptureRecord``.

Three shapes are in circulation:

* v1 records: ``element.textPreview`` plus a flat ``styles.computed`` map of
  CSS property names.
* v2.2 records: ``element.intent.accessibleName`` plus ``styles.primitives``.
* list items: the flattened summary the viewer listing returns, with
  ``accessibleName``/``tagName`` at the top level and ``primitivesSummary``.

The derivation engine only ever sees the canonical record; nothing here
raises on missing or malformed fields.
"""

from __future__ import annotations

import datetime as dt
import math
from typing import Any, Mapping, Optional

from ..logging_utils import get_logger
from .models import CaptureRecord, ColorValue, Rgba, ScreenshotRef, StylePrimitives

_log = get_logger("capture.adapter")

_COMPUTED_PADDING = ("padding-top", "padding-right", "padding-bottom", "padding-left")


def capture_from_payload(payload: Mapping[str, Any]) -> CaptureRecord:
    """Build a canonical capture from any stored payload shape."""

    data = payload if isinstance(payload, Mapping) else {}
    capture_id = _str(data.get("id")) or ""
    element = _mapping(data.get("element"))

    if element:
        intent = _mapping(element.get("intent"))
        attributes = _mapping(element.get("attributes"))
        tag_name = _str(element.get("tagName"))
        role = _str(element.get("role"))
        accessible_name = _str(intent.get("accessibleName")) or None
        text_preview = _str(element.get("textPreview"))
        if "intent" not in element:
            # v1 records carry no intent block: aria-label, then visible text.
            accessible_name = _str(attributes.get("ariaLabel")) or text_preview or None
    else:
        tag_name = _str(data.get("tagName"))
        role = _str(data.get("role"))
        accessible_name = _str(data.get("accessibleName"))
        text_preview = _str(data.get("textPreview"))

    styles = _mapping(data.get("styles"))
    if "primitivesSummary" in data:
        primitives = _primitives_from_summary(_mapping(data.get("primitivesSummary")))
    elif "primitives" in styles:
        primitives = _primitives_from_v2(_mapping(styles.get("primitives")), capture_id)
    elif "computed" in styles:
        primitives = _primitives_from_computed(_mapping(styles.get("computed")))
    else:
        primitives = None

    url = _str(data.get("url")) or _str(_mapping(data.get("page")).get("url")) or ""
    created_at = data.get("createdAt")
    if created_at is None:
        created_at = _mapping(data.get("conditions")).get("timestamp")

    return CaptureRecord(
        id=capture_id,
        session_id=_str(data.get("sessionId")) or "",
        url=url,
        created_at=_epoch_ms(created_at),
        tag_name=tag_name,
        role=role,
        accessible_name=accessible_name,
        selector=_str(data.get("selector")),
        text_preview=text_preview,
        project_id=_str(data.get("projectId")),
        screenshot=_screenshot(data.get("screenshot")),
        primitives=primitives,
        is_draft=bool(data.get("isDraft", False)),
        schema_version=_schema_version(data),
        payload=dict(data),
    )


def _schema_version(data: Mapping[str, Any]) -> int:
    version = _int(data.get("captureSchemaVersion"))
    if version is not None:
        return version
    if "primitivesSummary" in data:
        return 2
    styles = _mapping(data.get("styles"))
    return 2 if "primitives" in styles else 1


def _primitives_from_summary(summary: Mapping[str, Any]) -> StylePrimitives:
    def _color(key: str) -> Optional[ColorValue]:
        value = summary.get(key)
        if value is None:
            return None
        return ColorValue(raw=_format_color(value), rgba=_color_input(value))

    return StylePrimitives(
        padding_top=_str(summary.get("paddingTop")),
        padding_right=_str(summary.get("paddingRight")),
        padding_bottom=_str(summary.get("paddingBottom")),
        padding_left=_str(summary.get("paddingLeft")),
        background_color=_color("backgroundColorRgba"),
        color=_color("colorRgba"),
        border_color=_color("borderColorRgba"),
        shadow_presence=_str(summary.get("shadowPresence")),
        shadow_layer_count=_int(summary.get("shadowLayerCount")),
    )


def _primitives_from_v2(prims: Mapping[str, Any], capture_id: str) -> StylePrimitives:
    spacing = _mapping(prims.get("spacing"))
    shadow = _mapping(prims.get("shadow"))
    border = _mapping(prims.get("borderColor"))
    if border and "raw" not in border and "top" in border:
        # Per-side border colors; the top edge stands in for the element.
        border = _mapping(border.get("top"))

    sources = {
        str(key): value
        for key, value in _mapping(prims.get("sources")).items()
        if isinstance(value, str)
    }
    typography = _string_map(prims.get("typography"))
    radius = _string_map(prims.get("radius"))
    if prims.get("typography") is not None and typography is None:
        _log.debug("Capture {} has malformed typography primitives", capture_id)

    return StylePrimitives(
        padding_top=_str(spacing.get("paddingTop")),
        padding_right=_str(spacing.get("paddingRight")),
        padding_bottom=_str(spacing.get("paddingBottom")),
        padding_left=_str(spacing.get("paddingLeft")),
        background_color=_color_primitive(prims.get("backgroundColor")),
        color=_color_primitive(prims.get("color")),
        border_color=_color_primitive(border) if border else None,
        shadow_presence=_str(shadow.get("shadowPresence")),
        shadow_layer_count=_int(shadow.get("shadowLayerCount")),
        box_shadow_raw=_str(shadow.get("boxShadowRaw")),
        typography=typography,
        radius=radius,
        sources=sources,
    )


def _primitives_from_computed(computed: Mapping[str, Any]) -> StylePrimitives:
    padding = [_str(computed.get(key)) for key in _COMPUTED_PADDING]
    box_shadow = _str(computed.get("box-shadow"))
    presence = None
    if box_shadow is not None:
        presence = "none" if box_shadow == "none" else "some"

    def _color(key: str) -> Optional[ColorValue]:
        raw = _str(computed.get(key))
        if raw is None:
            return None
        return ColorValue(raw=raw, rgba=raw)

    return StylePrimitives(
        padding_top=padding[0],
        padding_right=padding[1],
        padding_bottom=padding[2],
        padding_left=padding[3],
        background_color=_color("background-color"),
        color=_color("color"),
        border_color=_color("border-color"),
        shadow_presence=presence,
        box_shadow_raw=box_shadow,
    )


def _color_primitive(value: Any) -> Optional[ColorValue]:
    data = _mapping(value)
    if not data:
        return None
    raw = _str(data.get("raw"))
    rgba = _color_input(data.get("rgba"))
    if raw is None and rgba is None:
        return None
    return ColorValue(raw=raw if raw is not None else _format_color(rgba), rgba=rgba)


def _color_input(value: Any):
    if isinstance(value, Mapping):
        try:
            channels = (
                float(value["r"]),
                float(value["g"]),
                float(value["b"]),
                float(value.get("a", 1)),
            )
        except (KeyError, TypeError, ValueError, OverflowError):
            return None
        if not all(math.isfinite(channel) for channel in channels):
            _log.debug("Dropping non-finite rgba {}", dict(value))
            return None
        return Rgba(*channels)
    if isinstance(value, str):
        return value
    return None


def _format_color(value: Any) -> str:
    if isinstance(value, Rgba):
        return f"{_num(value.r)},{_num(value.g)},{_num(value.b)},{_num(value.a)}"
    if isinstance(value, Mapping) and "r" in value:
        return ",".join(str(value.get(channel, "")) for channel in ("r", "g", "b", "a"))
    return "" if value is None else str(value)


def _num(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _screenshot(value: Any) -> Optional[ScreenshotRef]:
    data = _mapping(value)
    blob_id = _str(data.get("screenshotBlobId"))
    if not blob_id:
        return None
    return ScreenshotRef(
        blob_id=blob_id,
        mime_type=_str(data.get("mimeType")) or "image/webp",
        width=_int(data.get("width")) or 0,
        height=_int(data.get("height")) or 0,
    )


def _string_map(value: Any) -> Optional[dict[str, str]]:
    if not isinstance(value, Mapping):
        return None
    return {str(key): str(item) for key, item in value.items() if item is not None}


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _epoch_ms(value: Any) -> Optional[int]:
    if isinstance(value, str):
        try:
            parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return _int(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=dt.timezone.utc)
        return int(parsed.timestamp() * 1000)
    return _int(value)
