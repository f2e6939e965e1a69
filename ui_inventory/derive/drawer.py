"""Cross-reference queries behind the details drawer.

Each query works on the capture set it is handed and is recomputed on every
selection change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from ..capture.models import CaptureRecord
from .inventory import Component, page_label
from .signature import GroupingMode, compute_group_key
from .styles import StyleEntry, capture_uses_style

RELATED_COMPONENTS_LIMIT = 12


@dataclass(frozen=True)
class ComponentCaptureRow:
    capture: CaptureRecord
    label: str
    source_label: str
    url: str


@dataclass(frozen=True)
class StyleLocation:
    source_label: str
    url: str
    uses: int


def component_captures(
    component: Component,
    captures: Iterable[CaptureRecord],
    mode: GroupingMode | str,
) -> list[ComponentCaptureRow]:
    rows = [
        ComponentCaptureRow(
            capture=capture,
            label=capture.display_name,
            source_label=page_label(capture.url),
            url=capture.url,
        )
        for capture in captures
        if compute_group_key(capture, mode) == component.key
    ]
    rows.sort(key=lambda row: (row.source_label, row.url))
    return rows


def style_locations(style: StyleEntry, captures: Iterable[CaptureRecord]) -> list[StyleLocation]:
    counts: dict[tuple[str, str], int] = {}
    for capture in captures:
        if not capture_uses_style(capture, style.property, style.value):
            continue
        location = (page_label(capture.url), capture.url)
        counts[location] = counts.get(location, 0) + 1
    locations = [
        StyleLocation(source_label=label, url=url, uses=uses)
        for (label, url), uses in counts.items()
    ]
    locations.sort(key=lambda location: (-location.uses, location.source_label))
    return locations


def related_components(style: StyleEntry, components: Sequence[Component]) -> list[Component]:
    """Components with at least one capture using ``style``, capped at 12."""

    related = [
        component
        for component in components
        if any(
            capture_uses_style(capture, style.property, style.value)
            for capture in component.captures
        )
    ]
    related.sort(key=lambda component: (-component.captures_count, component.name))
    return related[:RELATED_COMPONENTS_LIMIT]
