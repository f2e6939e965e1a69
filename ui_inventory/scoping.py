"""Project scoping and the conjunctive capture filters applied before grouping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .capture.models import CaptureRecord
from .derive.inventory import designer_category

ALL = "all"


@dataclass(frozen=True)
class ProjectScope:
    """Membership test for one project.

    Captures that carry a ``project_id`` are compared directly; older captures
    without one belong to the project when their session is linked to it.
    """

    project_id: str
    session_ids: frozenset[str] = frozenset()

    def includes(self, capture: CaptureRecord) -> bool:
        if capture.project_id:
            return capture.project_id == self.project_id
        return capture.session_id in self.session_ids


def scope_captures(
    captures: Iterable[CaptureRecord],
    project_id: str,
    linked_session_ids: Iterable[str] = (),
) -> list[CaptureRecord]:
    scope = ProjectScope(project_id=project_id, session_ids=frozenset(linked_session_ids))
    return [capture for capture in captures if scope.includes(capture)]


@dataclass(frozen=True)
class CaptureFilter:
    search: str = ""
    screenshot_only: bool = False
    tag_name: Optional[str] = None
    category: Optional[str] = None

    def matches(self, capture: CaptureRecord) -> bool:
        if self.search:
            haystack = " ".join(
                [
                    capture.accessible_name or "",
                    capture.selector or "",
                    capture.url or "",
                    capture.tag_name or "",
                    capture.role or "",
                ]
            ).lower()
            if self.search.lower() not in haystack:
                return False
        if self.screenshot_only and not capture.has_screenshot:
            return False
        if self.tag_name not in (None, ALL) and capture.tag_name != self.tag_name:
            return False
        if self.category not in (None, ALL) and designer_category(capture) != self.category:
            return False
        return True

    @property
    def is_empty(self) -> bool:
        return self == CaptureFilter()


def filter_captures(
    captures: Iterable[CaptureRecord], capture_filter: Optional[CaptureFilter] = None
) -> list[CaptureRecord]:
    if capture_filter is None:
        return list(captures)
    return [capture for capture in captures if capture_filter.matches(capture)]


def unique_tag_names(captures: Iterable[CaptureRecord]) -> list[str]:
    return sorted({capture.tag_name for capture in captures if capture.tag_name})
