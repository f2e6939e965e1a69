"""Read-time merge of user overlays onto derived components."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from ..derive.inventory import DEFAULT_STATUS, Component
from .models import Annotation, ComponentOverride


@dataclass(frozen=True)
class ResolvedComponent:
    """A derived component as the UI shows it, overrides and annotation applied."""

    component: Component
    display_name: str
    category: str
    type: str
    status: str
    description: Optional[str] = None
    notes: str = ""
    tags: tuple[str, ...] = ()
    overridden: bool = False

    @property
    def id(self) -> str:
        return self.component.id


def resolve_component_labels(
    component: Component, override: Optional[ComponentOverride] = None
) -> ResolvedComponent:
    if override is None:
        return ResolvedComponent(
            component=component,
            display_name=component.name,
            category=component.category,
            type=component.type,
            status=component.status or DEFAULT_STATUS,
        )
    return ResolvedComponent(
        component=component,
        display_name=_pick(override.display_name, component.name),
        category=_pick(override.category_override, component.category),
        type=_pick(override.type_override, component.type),
        status=_pick(override.status_override, component.status) or DEFAULT_STATUS,
        description=override.description,
        overridden=True,
    )


def merge_annotation(annotation: Optional[Annotation]) -> tuple[str, tuple[str, ...]]:
    """Return ``(notes, tags)``; a missing annotation reads as ``("", ())``."""

    if annotation is None:
        return "", ()
    return annotation.notes or "", tuple(annotation.tags or ())


def apply_overlays(
    components: Iterable[Component],
    overrides: Mapping[str, ComponentOverride],
    annotations: Mapping[str, Annotation],
) -> list[ResolvedComponent]:
    """Resolve every component against overlays keyed by component id.

    The input components are never modified.
    """

    resolved = []
    for component in components:
        labels = resolve_component_labels(component, overrides.get(component.id))
        notes, tags = merge_annotation(annotations.get(component.id))
        resolved.append(
            ResolvedComponent(
                component=labels.component,
                display_name=labels.display_name,
                category=labels.category,
                type=labels.type,
                status=labels.status,
                description=labels.description,
                notes=notes,
                tags=tags,
                overridden=labels.overridden,
            )
        )
    return resolved


def _pick(override_value: Optional[str], derived: str) -> str:
    return derived if override_value is None else override_value
