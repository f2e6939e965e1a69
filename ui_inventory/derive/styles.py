"""Style inventory: repeated primitive usages aggregated by property and value."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Union

from ..capture.models import CaptureRecord
from .inventory import page_label
from .signature import hash_signature

NO_TOKEN = "—"
DESIGN_SYSTEM_SOURCE = "Design System"

_RE_CSS_VAR = re.compile(r"var\((--[^)]+)\)")

_TYPOGRAPHY_KEYS = ("fontSize", "fontWeight", "fontFamily", "lineHeight")
_RADIUS_KEYS = (
    ("radiusTopLeft", "topLeft"),
    ("radiusTopRight", "topRight"),
    ("radiusBottomRight", "bottomRight"),
    ("radiusBottomLeft", "bottomLeft"),
)


@dataclass(frozen=True)
class StyleOccurrence:
    property: str
    value: str
    capture: CaptureRecord


@dataclass(frozen=True)
class StyleEntry:
    id: str
    property: str
    kind: str
    value: str
    token: str
    usage_count: int
    source: str


def extract_token(sources: Union[Mapping[str, str], str, None]) -> str:
    """Return the first ``--name`` referenced through ``var()``, else ``"—"``."""

    if not sources:
        return NO_TOKEN
    values = [sources] if isinstance(sources, str) else list(sources.values())
    for value in values:
        if isinstance(value, str):
            match = _RE_CSS_VAR.search(value)
            if match:
                return match.group(1)
    return NO_TOKEN


def infer_style_kind(property_key: str) -> str:
    key = property_key.lower()
    if key in ("backgroundcolor", "color", "bordercolor"):
        return "color"
    if key.startswith("padding") or key.startswith("margin"):
        return "spacing"
    if key in ("fontsize", "fontweight", "fontfamily", "lineheight"):
        return "typography"
    if key == "boxshadow":
        return "shadow"
    if key.startswith("radius"):
        return "border"
    return "unknown"


def infer_style_source(sources: Optional[Mapping[str, str]], url: Optional[str]) -> str:
    if sources:
        for value in sources.values():
            if isinstance(value, str) and "var(--" in value:
                return DESIGN_SYSTEM_SOURCE
    return page_label(url)


def style_occurrences(capture: CaptureRecord) -> list[StyleOccurrence]:
    """Every ``(property, value)`` pair one capture contributes to the inventory."""

    prims = capture.primitives
    if prims is None:
        return []
    pairs: list[tuple[str, Optional[str]]] = [
        ("backgroundColor", prims.background_color.raw if prims.background_color else None),
        ("color", prims.color.raw if prims.color else None),
        ("borderColor", prims.border_color.raw if prims.border_color else None),
        ("paddingTop", prims.padding_top),
        ("paddingRight", prims.padding_right),
        ("paddingBottom", prims.padding_bottom),
        ("paddingLeft", prims.padding_left),
    ]
    if prims.typography:
        pairs.extend((key, prims.typography.get(key)) for key in _TYPOGRAPHY_KEYS)
    pairs.append(("boxShadow", prims.box_shadow_raw))
    if prims.radius:
        pairs.extend((key, prims.radius.get(corner)) for key, corner in _RADIUS_KEYS)
    return [
        StyleOccurrence(property=key, value=value, capture=capture)
        for key, value in pairs
        if value is not None
    ]


def capture_uses_style(capture: CaptureRecord, property_key: str, value: str) -> bool:
    return any(
        occurrence.property == property_key and occurrence.value == value
        for occurrence in style_occurrences(capture)
    )


def derive_style_inventory(captures: Iterable[CaptureRecord]) -> list[StyleEntry]:
    """Aggregate style usages; most used first, then kind, then value."""

    buckets: dict[tuple[str, str], list[StyleOccurrence]] = {}
    for capture in captures:
        for occurrence in style_occurrences(capture):
            buckets.setdefault((occurrence.property, occurrence.value), []).append(occurrence)

    entries = []
    for (property_key, value), occurrences in buckets.items():
        first = occurrences[0].capture
        sources = first.primitives.sources if first.primitives else None
        token = extract_token(sources)
        entries.append(
            StyleEntry(
                id=hash_signature(f"{property_key}|{token}|{value}", "style"),
                property=property_key,
                kind=infer_style_kind(property_key),
                value=value,
                token=token,
                usage_count=len(occurrences),
                source=infer_style_source(sources, first.url),
            )
        )
    entries.sort(key=lambda entry: (-entry.usage_count, entry.kind, entry.value))
    return entries
