from __future__ import annotations

from conftest import make_capture

from ui_inventory.scoping import CaptureFilter, ProjectScope, filter_captures, scope_captures, unique_tag_names


def test_direct_project_id_wins_over_session_link() -> None:
    scope = ProjectScope(project_id="p1", session_ids=frozenset({"s1"}))
    assert scope.includes(make_capture("1", project_id="p1", session_id="other"))
    assert not scope.includes(make_capture("2", project_id="p2", session_id="s1"))


def test_session_link_fallback() -> None:
    legacy = make_capture("1", project_id=None, session_id="s1")
    assert scope_captures([legacy], "p1", ["s1"]) == [legacy]
    assert scope_captures([legacy], "p2", ["s9"]) == []
    assert scope_captures([legacy], "p2") == []


def test_search_matches_name_selector_url_tag_role() -> None:
    captures = [
        make_capture("1", name="Checkout"),
        make_capture("2", name=None, tag="input", role="searchbox"),
        make_capture("3", name="Home", url="https://shop.test/cart"),
    ]
    assert [c.id for c in filter_captures(captures, CaptureFilter(search="CHECK"))] == ["1"]
    assert [c.id for c in filter_captures(captures, CaptureFilter(search="searchbox"))] == ["2"]
    assert [c.id for c in filter_captures(captures, CaptureFilter(search="cart"))] == ["3"]


def test_filters_are_conjunctive() -> None:
    captures = [
        make_capture("1", tag="button", screenshot="b1"),
        make_capture("2", tag="button"),
        make_capture("3", tag="a", role="link", screenshot="b3"),
    ]
    both = CaptureFilter(screenshot_only=True, tag_name="button")
    assert [c.id for c in filter_captures(captures, both)] == ["1"]
    by_category = CaptureFilter(category="Navigation")
    assert [c.id for c in filter_captures(captures, by_category)] == ["3"]
    assert len(filter_captures(captures, CaptureFilter(tag_name="all", category="all"))) == 3
    assert filter_captures(captures, None) == captures


def test_unique_tag_names() -> None:
    captures = [make_capture("1", tag="button"), make_capture("2", tag="a"), make_capture("3", tag=None)]
    assert unique_tag_names(captures) == ["a", "button"]
    assert CaptureFilter().is_empty
