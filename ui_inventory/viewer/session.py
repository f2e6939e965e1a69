"""Mutable viewer state around the pure derivation engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from ..capture.models import CaptureRecord
from ..derive.grouping import CaptureGroup, VariantBreakdown, derive_variants, find_group, group_captures
from ..derive.signature import GroupingMode
from ..logging_utils import get_logger
from ..scoping import CaptureFilter, filter_captures

LOAD_FAILED_MESSAGE = "Failed to load captures. Please try again."


@dataclass(frozen=True)
class LoadToken:
    request_id: int
    silent: bool = False


class ViewerSession:
    """Selection state plus the request cursor guarding capture list loads.

    A load is started with ``begin_load`` and finished with ``complete_load``
    or ``fail_load``. Only the load whose request id still matches the cursor
    may change the capture list; any other result is discarded.
    """

    def __init__(
        self,
        grouping_mode: GroupingMode | str = GroupingMode.NAME_ONLY,
        capture_filter: Optional[CaptureFilter] = None,
    ) -> None:
        self._log = get_logger("viewer")
        self.session_id: Optional[str] = None
        self.grouping_mode = GroupingMode(grouping_mode)
        self.capture_filter = capture_filter or CaptureFilter()
        self.selected_group_key: Optional[str] = None
        self.selected_variant_key: Optional[str] = None
        self.captures: tuple[CaptureRecord, ...] = ()
        self.loading = False
        self.error: Optional[str] = None
        self._cursor = 0
        self._in_flight: Optional[LoadToken] = None

    @property
    def request_id(self) -> int:
        return self._cursor

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    def select_session(self, session_id: Optional[str]) -> None:
        """Switch sessions; outstanding loads become stale."""

        self.session_id = session_id
        self.capture_filter = CaptureFilter()
        self.selected_group_key = None
        self.selected_variant_key = None
        self.captures = ()
        self.error = None
        self.loading = False
        self._cursor += 1
        self._in_flight = None

    def begin_load(self, *, silent: bool = False) -> Optional[LoadToken]:
        """Start a load, or return None while another one is still running."""

        if self._in_flight is not None:
            return None
        self._cursor += 1
        token = LoadToken(request_id=self._cursor, silent=silent)
        self._in_flight = token
        if not silent:
            self.loading = True
            self.error = None
        return token

    def is_current(self, token: LoadToken) -> bool:
        return token.request_id == self._cursor

    def complete_load(self, token: LoadToken, captures: Iterable[CaptureRecord]) -> bool:
        """Apply a finished load; returns True when the capture list changed."""

        try:
            if not self.is_current(token):
                self._log.debug("Discarding stale capture list (request {})", token.request_id)
                return False
            incoming = tuple(captures)
            if not token.silent:
                self.loading = False
            if _same_list(self.captures, incoming):
                return False
            self.captures = incoming
            return True
        finally:
            self._release(token)

    def fail_load(self, token: LoadToken, reason: object = None) -> None:
        try:
            if not self.is_current(token):
                return
            self._log.warning("Capture list load failed: {}", reason)
            if not token.silent:
                self.loading = False
                self.error = LOAD_FAILED_MESSAGE
        finally:
            self._release(token)

    def _release(self, token: LoadToken) -> None:
        if self._in_flight == token:
            self._in_flight = None

    def set_grouping_mode(self, mode: GroupingMode | str) -> None:
        self.grouping_mode = GroupingMode(mode)
        self.selected_group_key = None
        self.selected_variant_key = None

    def set_filter(self, capture_filter: CaptureFilter) -> None:
        self.capture_filter = capture_filter
        self.selected_group_key = None
        self.selected_variant_key = None

    def select_group(self, group_key: Optional[str]) -> None:
        self.selected_group_key = group_key
        self.selected_variant_key = None

    def select_variant(self, variant_key: Optional[str]) -> None:
        self.selected_variant_key = variant_key

    def visible_captures(self) -> list[CaptureRecord]:
        return filter_captures(self.captures, self.capture_filter)

    def groups(self) -> list[CaptureGroup]:
        return group_captures(self.visible_captures(), self.grouping_mode)

    def selected_group(self) -> Optional[CaptureGroup]:
        return find_group(self.groups(), self.selected_group_key)

    def variants(self) -> Optional[VariantBreakdown]:
        group = self.selected_group()
        return derive_variants(group.members) if group else None

    def selected_members(self) -> tuple[CaptureRecord, ...]:
        """Members shown for the current selection; all group members without a variant."""

        group = self.selected_group()
        if group is None:
            return ()
        return derive_variants(group.members).members_of(self.selected_variant_key)


def _same_list(previous: tuple[CaptureRecord, ...], incoming: tuple[CaptureRecord, ...]) -> bool:
    # Same length and same newest id counts as unchanged.
    if len(previous) != len(incoming):
        return False
    if not previous:
        return True
    return previous[0].id == incoming[0].id
