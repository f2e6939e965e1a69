from __future__ import annotations

from conftest import make_capture, make_primitives

from ui_inventory.capture.models import Rgba
from ui_inventory.derive.signature import GroupingMode
from ui_inventory.scoping import CaptureFilter
from ui_inventory.viewer.session import LOAD_FAILED_MESSAGE, ViewerSession


def test_in_flight_guard_blocks_overlapping_loads() -> None:
    viewer = ViewerSession()
    token = viewer.begin_load()
    assert token is not None
    assert viewer.begin_load(silent=True) is None
    assert viewer.complete_load(token, [make_capture("1")]) is True
    assert viewer.in_flight is False
    assert viewer.begin_load(silent=True) is not None


def test_stale_results_are_discarded() -> None:
    viewer = ViewerSession()
    viewer.select_session("s1")
    stale = viewer.begin_load()
    viewer.select_session("s2")
    fresh = viewer.begin_load()

    assert viewer.complete_load(stale, [make_capture("old")]) is False
    assert viewer.captures == ()
    assert viewer.in_flight is True
    assert viewer.complete_load(fresh, [make_capture("new")]) is True
    assert [c.id for c in viewer.captures] == ["new"]
    assert viewer.in_flight is False


def test_unchanged_list_is_kept() -> None:
    viewer = ViewerSession()
    first = [make_capture("a"), make_capture("b")]
    viewer.complete_load(viewer.begin_load(), first)
    kept = viewer.captures
    assert viewer.complete_load(viewer.begin_load(silent=True), [make_capture("a"), make_capture("z")]) is False
    assert viewer.captures is kept
    assert viewer.complete_load(viewer.begin_load(silent=True), [make_capture("c")] + first) is True


def test_failed_load_sets_error_only_when_not_silent() -> None:
    viewer = ViewerSession()
    token = viewer.begin_load()
    viewer.fail_load(token, "boom")
    assert viewer.error == LOAD_FAILED_MESSAGE
    assert viewer.loading is False
    assert viewer.in_flight is False

    viewer.error = None
    viewer.fail_load(viewer.begin_load(silent=True), "boom")
    assert viewer.error is None


def test_selection_resets() -> None:
    blue = make_primitives()
    red = make_primitives(background=Rgba(255, 0, 0, 1))
    viewer = ViewerSession(grouping_mode=GroupingMode.NAME_ONLY)
    viewer.complete_load(
        viewer.begin_load(),
        [
            make_capture("1", primitives=blue),
            make_capture("2", primitives=red),
            make_capture("3", primitives=blue),
            make_capture("4", tag="a", role="link", name="Docs"),
        ],
    )
    viewer.select_group("button::submit")
    variants = viewer.variants()
    assert [v.count for v in variants.variants] == [2, 1]
    viewer.select_variant(variants.variants[1].key)
    assert [c.id for c in viewer.selected_members()] == ["2"]

    viewer.select_variant(None)
    assert [c.id for c in viewer.selected_members()] == ["1", "3", "2"]

    viewer.select_variant(variants.variants[0].key)
    viewer.set_grouping_mode(GroupingMode.NAME_PLUS_TYPE)
    assert viewer.selected_group_key is None
    assert viewer.selected_variant_key is None

    viewer.select_group("button::button::submit")
    viewer.set_filter(CaptureFilter(tag_name="a"))
    assert viewer.selected_group_key is None
    assert [g.key for g in viewer.groups()] == ["a::link::docs"]
    assert viewer.selected_members() == ()
