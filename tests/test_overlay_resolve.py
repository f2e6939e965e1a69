from __future__ import annotations

from conftest import make_capture

from ui_inventory.derive.inventory import derive_component_inventory
from ui_inventory.derive.signature import GroupingMode
from ui_inventory.overlay.models import Annotation, ComponentOverride
from ui_inventory.overlay.resolve import apply_overlays, merge_annotation, resolve_component_labels


def _components():
    captures = [
        make_capture("1", name="Save"),
        make_capture("2", name="Save"),
        make_capture("3", tag="a", role="link", name="Docs"),
    ]
    return captures, derive_component_inventory(captures, GroupingMode.NAME_ONLY)


def test_labels_fall_through_without_override() -> None:
    _, components = _components()
    resolved = resolve_component_labels(components[0])
    assert resolved.display_name == "Save"
    assert resolved.status == "Unknown"
    assert resolved.overridden is False


def test_override_replaces_only_set_fields() -> None:
    _, components = _components()
    component = components[0]
    override = ComponentOverride(
        id=f"p1:{component.id}",
        project_id="p1",
        component_key=component.id,
        display_name="Primary button",
        status_override="Approved",
    )
    resolved = resolve_component_labels(component, override)
    assert resolved.display_name == "Primary button"
    assert resolved.status == "Approved"
    assert resolved.category == component.category
    assert resolved.type == component.type


def test_override_does_not_change_derived_identity() -> None:
    captures, components = _components()
    before = [(c.id, c.name) for c in components]
    overrides = {
        c.id: ComponentOverride(
            id=f"p1:{c.id}", project_id="p1", component_key=c.id, display_name="Renamed"
        )
        for c in components
    }
    resolved = apply_overlays(components, overrides, {})
    assert all(item.display_name == "Renamed" for item in resolved)
    assert [(c.id, c.name) for c in components] == before
    rederived = derive_component_inventory(captures, GroupingMode.NAME_ONLY)
    assert [c.id for c in rederived] == [c.id for c in components]


def test_annotation_defaults() -> None:
    assert merge_annotation(None) == ("", ())
    annotation = Annotation(
        id="p1:k1", project_id="p1", component_key="k1", notes="hello", tags=["x"]
    )
    assert merge_annotation(annotation) == ("hello", ("x",))


def test_apply_overlays_shares_one_annotation_per_component() -> None:
    _, components = _components()
    save = components[0]
    annotations = {
        save.id: Annotation(
            id=f"p1:{save.id}", project_id="p1", component_key=save.id, notes="n", tags=["cta"]
        )
    }
    resolved = {item.id: item for item in apply_overlays(components, {}, annotations)}
    assert resolved[save.id].tags == ("cta",)
    assert resolved[save.id].component.captures_count == 2
    assert resolved[components[1].id].notes == ""


def test_annotation_wire_shape_round_trips() -> None:
    record = {
        "id": "p1:k1",
        "projectId": "p1",
        "componentKey": "k1",
        "notes": "hello",
        "tags": ["x", "y"],
        "updatedAt": 1700000000000,
    }
    assert Annotation.model_validate(record).to_record() == record

    override = {
        "id": "p1:k1",
        "projectId": "p1",
        "componentKey": "k1",
        "displayName": None,
        "description": "desc",
        "categoryOverride": None,
        "typeOverride": "chip",
        "statusOverride": None,
        "updatedAt": 5,
    }
    assert ComponentOverride.model_validate(override).to_record() == override
