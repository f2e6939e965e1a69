from __future__ import annotations

from conftest import make_capture, make_primitives

from ui_inventory.capture.models import Rgba
from ui_inventory.derive.signature import hash_signature
from ui_inventory.derive.styles import (
    capture_uses_style,
    derive_style_inventory,
    extract_token,
    infer_style_kind,
    infer_style_source,
)


def test_extract_token() -> None:
    assert extract_token("var(--color-primary)") == "--color-primary"
    assert extract_token("rgb(0, 0, 0)") == "—"
    assert extract_token({"color": "16px", "backgroundColor": "var(--bg, #fff)"}) == "--bg, #fff"
    assert extract_token(None) == "—"
    assert extract_token({}) == "—"


def test_infer_style_kind() -> None:
    assert infer_style_kind("backgroundColor") == "color"
    assert infer_style_kind("paddingLeft") == "spacing"
    assert infer_style_kind("fontSize") == "typography"
    assert infer_style_kind("boxShadow") == "shadow"
    assert infer_style_kind("radiusTopLeft") == "border"
    assert infer_style_kind("zIndex") == "unknown"


def test_infer_style_source() -> None:
    assert infer_style_source({"color": "var(--x)"}, "https://a.test/") == "Design System"
    assert infer_style_source({}, "https://a.test/blog/post") == "Blog"


def test_style_inventory_counts_and_order() -> None:
    shared = make_primitives(padding="8px")
    captures = [
        make_capture("1", primitives=shared),
        make_capture("2", primitives=shared),
        make_capture(
            "3",
            primitives=make_primitives(padding="4px", background=Rgba(255, 0, 0, 1)),
        ),
    ]
    entries = derive_style_inventory(captures)
    by_key = {(e.property, e.value): e for e in entries}

    assert by_key[("paddingTop", "8px")].usage_count == 2
    assert by_key[("backgroundColor", "rgb(255, 0, 0)")].usage_count == 1
    usage = [e.usage_count for e in entries]
    assert usage == sorted(usage, reverse=True)
    top = [e for e in entries if e.usage_count == 3]
    # White text appears in all three captures.
    assert [(e.kind, e.value) for e in top] == [("color", "rgb(255, 255, 255)")]


def test_style_entry_id_and_token() -> None:
    prims = make_primitives(sources={"backgroundColor": "var(--brand)"})
    entries = derive_style_inventory([make_capture("1", primitives=prims)])
    background = next(e for e in entries if e.property == "backgroundColor")
    assert background.token == "--brand"
    assert background.source == "Design System"
    assert background.id == hash_signature("backgroundColor|--brand|rgb(0, 0, 255)", "style")


def test_captures_without_primitives_contribute_nothing() -> None:
    assert derive_style_inventory([make_capture("1")]) == []
    assert capture_uses_style(make_capture("1"), "color", "red") is False
