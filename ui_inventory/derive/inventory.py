"""Component inventory derived from grouped captures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import urlparse

from ..capture.models import CaptureRecord
from .grouping import group_captures
from .signature import UNKNOWN_TAG, GroupingMode, component_key

DEFAULT_STATUS = "Unknown"
HOMEPAGE_LABEL = "Homepage"
UNKNOWN_SOURCE = "Unknown"

_INPUT_ROLES = {
    "textbox",
    "combobox",
    "checkbox",
    "radio",
    "switch",
    "searchbox",
    "spinbutton",
    "slider",
}
_NAV_ROLES = {
    "link",
    "navigation",
    "menuitem",
    "menuitemcheckbox",
    "menuitemradio",
    "menu",
    "menubar",
}
_HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
_CONTENT_TAGS = {"p", "article", "label", "span", "strong", "em", "code", "pre"}
_CONTENT_ROLES = {"heading", "article", "text", "note", "definition"}
_CONTAINER_TAGS = {
    "div",
    "section",
    "main",
    "header",
    "footer",
    "form",
    "dialog",
    "aside",
    "ul",
    "ol",
    "li",
    "table",
    "tr",
    "td",
    "th",
    "tbody",
    "thead",
}
_CONTAINER_ROLES = {
    "dialog",
    "region",
    "group",
    "list",
    "listbox",
    "table",
    "grid",
    "tabpanel",
}


@dataclass(frozen=True)
class Component:
    id: str
    key: str
    name: str
    category: str
    type: str
    status: str
    source: str
    captures: tuple[CaptureRecord, ...]

    @property
    def captures_count(self) -> int:
        return len(self.captures)


def page_label(url: Optional[str]) -> str:
    """Label a page by its first path segment (``/pricing/x`` -> ``Pricing``)."""

    if not url:
        return UNKNOWN_SOURCE
    try:
        parsed = urlparse(url)
    except ValueError:
        return UNKNOWN_SOURCE
    if not parsed.scheme:
        return UNKNOWN_SOURCE
    segments = [segment for segment in parsed.path.split("/") if segment]
    if not segments:
        return HOMEPAGE_LABEL
    first = segments[0]
    return first[:1].upper() + first[1:]


def infer_category(capture: CaptureRecord) -> str:
    """Fixed component taxonomy used for inventory rows."""

    tag = (capture.tag_name or "").lower()
    role = (capture.role or "").lower()
    if tag == "button" or role == "button" or tag == "a" or role == "link":
        return "Actions"
    if tag in ("input", "select", "textarea"):
        return "Forms"
    if role in ("textbox", "combobox", "checkbox", "radio"):
        return "Forms"
    if tag == "nav" or role == "navigation":
        return "Navigation"
    if role in ("alert", "status"):
        return "Feedback"
    if tag in ("img", "video", "svg") or role == "img":
        return "Media"
    return "Layout"


def designer_category(capture: CaptureRecord) -> str:
    """Designer-facing category used by the capture list filter."""

    tag = (capture.tag_name or "").lower()
    role = (capture.role or "").lower()
    if tag in ("img", "video", "audio", "svg", "canvas") or role == "img":
        return "Media"
    if tag in ("input", "textarea", "select", "option") or role in _INPUT_ROLES:
        return "Input"
    if tag == "button" or role == "button":
        return "Action"
    if tag in ("a", "nav") or role in _NAV_ROLES:
        return "Navigation"
    if tag in _HEADING_TAGS or tag in _CONTENT_TAGS or role in _CONTENT_ROLES:
        return "Content"
    if tag in _CONTAINER_TAGS or role in _CONTAINER_ROLES:
        return "Container"
    return "Other"


def component_name(capture: CaptureRecord) -> str:
    if capture.accessible_name:
        return capture.accessible_name
    if capture.text_preview:
        return capture.text_preview
    tag = (capture.tag_name or UNKNOWN_TAG).lower()
    return f"{tag} ({capture.role})" if capture.role else tag


def derive_component_inventory(
    captures: Iterable[CaptureRecord], mode: GroupingMode | str
) -> list[Component]:
    """One component per group key, most captured first, then by name."""

    components = []
    for group in group_captures(captures, mode):
        first = group.members[0]
        components.append(
            Component(
                id=component_key(group.key),
                key=group.key,
                name=component_name(first),
                category=infer_category(first),
                type=first.role or (first.tag_name or UNKNOWN_TAG).lower(),
                status=DEFAULT_STATUS,
                source=page_label(first.url),
                captures=group.members,
            )
        )
    components.sort(key=lambda component: (-component.captures_count, component.name))
    return components
