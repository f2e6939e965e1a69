"""Canonical in-memory capture shape consumed by the derivation engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union


@dataclass(frozen=True)
class Rgba:
    r: float
    g: float
    b: float
    a: float = 1.0


# Legacy records stored colors as "rgba(...)" or "r,g,b,a" strings.
ColorInput = Union[Rgba, Mapping[str, Any], str, None]


@dataclass(frozen=True)
class ColorValue:
    raw: str
    rgba: ColorInput = None


@dataclass(frozen=True)
class ScreenshotRef:
    blob_id: str
    mime_type: str = "image/webp"
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class StylePrimitives:
    padding_top: Optional[str] = None
    padding_right: Optional[str] = None
    padding_bottom: Optional[str] = None
    padding_left: Optional[str] = None
    background_color: Optional[ColorValue] = None
    color: Optional[ColorValue] = None
    border_color: Optional[ColorValue] = None
    shadow_presence: Optional[str] = None
    shadow_layer_count: Optional[int] = None
    box_shadow_raw: Optional[str] = None
    typography: Optional[Mapping[str, str]] = None
    radius: Optional[Mapping[str, str]] = None
    sources: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CaptureRecord:
    """A single captured UI element.

    ``payload`` keeps the stored record untouched so exports can emit it as-is;
    every other field is the normalized view produced by the schema adapter.
    """

    id: str
    session_id: str = ""
    url: str = ""
    created_at: Optional[int] = None
    tag_name: Optional[str] = None
    role: Optional[str] = None
    accessible_name: Optional[str] = None
    selector: Optional[str] = None
    text_preview: Optional[str] = None
    project_id: Optional[str] = None
    screenshot: Optional[ScreenshotRef] = None
    primitives: Optional[StylePrimitives] = None
    is_draft: bool = False
    schema_version: int = 2
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def has_screenshot(self) -> bool:
        return bool(self.screenshot and self.screenshot.blob_id)

    @property
    def display_name(self) -> str:
        return self.accessible_name or self.selector or "(no name)"
