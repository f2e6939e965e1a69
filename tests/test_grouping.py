from __future__ import annotations

from conftest import make_capture, make_primitives

from ui_inventory.capture.models import Rgba
from ui_inventory.derive.grouping import derive_variants, find_group, group_captures
from ui_inventory.derive.signature import GroupingMode


def _scenario():
    return [
        make_capture("c1", tag="button", role="button", name="Submit"),
        make_capture("c2", tag="button", role="button", name="submit"),
        make_capture("c3", tag="a", role="link", name="Submit"),
    ]


def test_name_plus_type_scenario() -> None:
    groups = group_captures(_scenario(), GroupingMode.NAME_PLUS_TYPE)
    assert [(group.key, group.count) for group in groups] == [
        ("button::button::submit", 2),
        ("a::link::submit", 1),
    ]
    assert [member.id for member in groups[0].members] == ["c1", "c2"]


def test_grouping_is_order_independent_for_membership() -> None:
    captures = _scenario()
    forward = {g.key: {m.id for m in g.members} for g in group_captures(captures, "namePlusType")}
    backward = {
        g.key: {m.id for m in g.members}
        for g in group_captures(list(reversed(captures)), "namePlusType")
    }
    assert forward == backward


def test_grouping_is_deterministic() -> None:
    captures = _scenario() + [make_capture("c4", tag="input", role="textbox", name="Email")]
    first = group_captures(captures, GroupingMode.NAME_ONLY)
    second = group_captures(captures, GroupingMode.NAME_ONLY)
    assert [(g.key, [m.id for m in g.members]) for g in first] == [
        (g.key, [m.id for m in g.members]) for g in second
    ]
    # Equal counts keep first-seen order.
    assert [g.key for g in first] == ["button::submit", "a::submit", "input::email"]


def test_find_group() -> None:
    groups = group_captures(_scenario(), GroupingMode.NAME_ONLY)
    assert find_group(groups, "a::submit").count == 1
    assert find_group(groups, "missing") is None
    assert find_group(groups, None) is None


def test_variants_sorted_by_count_then_key() -> None:
    blue = make_primitives()
    red = make_primitives(background=Rgba(255, 0, 0, 1))
    members = [
        make_capture("a", primitives=red),
        make_capture("b", primitives=blue),
        make_capture("c", primitives=blue),
        make_capture("d"),
    ]
    breakdown = derive_variants(members)
    assert [v.count for v in breakdown.variants] == [2, 1, 1]
    assert [v.index for v in breakdown.variants] == [1, 2, 3]
    # Single-member variants are ordered by key.
    assert breakdown.variants[1].members[0].id == "a"
    assert breakdown.variants[2].key == "unknown"
    assert breakdown.variant_by_capture["d"] == "unknown"
    assert breakdown.index_of("unknown") == 3
    assert [m.id for m in breakdown.members_of(None)] == ["b", "c", "a", "d"]
    assert breakdown.members_of("nope") == ()
