"""Overlay writes: annotations, label overrides and project tag bookkeeping."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Optional

from ..errors import OverlayValidationError
from ..logging_utils import get_logger
from ..storage.store import CaptureStore
from .models import Annotation, ComponentOverride, ProjectTag, overlay_id

_log = get_logger("overlay")


def _require_key(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value:
        raise OverlayValidationError(f"Invalid {label}")
    return value


def _label(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


class OverlayService:
    """Validated overlay mutations on top of ``CaptureStore``.

    Every write requires a non-empty ``project_id`` and ``component_key``;
    a missing key raises ``OverlayValidationError`` before anything is stored.
    Storage failures propagate as ``StoreError``.
    """

    def __init__(self, store: CaptureStore) -> None:
        self._store = store

    def get_annotation(self, project_id: str, component_key: str) -> Optional[Annotation]:
        return self._store.get_annotation(
            _require_key(project_id, "projectId"), _require_key(component_key, "componentKey")
        )

    def list_annotations(self, project_id: str) -> dict[str, Annotation]:
        annotations = self._store.list_annotations_for_project(_require_key(project_id, "projectId"))
        return {annotation.component_key: annotation for annotation in annotations}

    def upsert_annotation(
        self,
        project_id: str,
        component_key: str,
        notes: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Annotation:
        """Replace the annotation for one component.

        Both fields are written on every call: ``notes=None`` stores ``""`` and
        ``tags=None`` stores ``[]``. Usage counts of tags added or removed by
        this write are adjusted afterwards.
        """

        _require_key(project_id, "projectId")
        _require_key(component_key, "componentKey")
        if tags is not None and (isinstance(tags, (str, bytes)) or not isinstance(tags, Iterable)):
            raise OverlayValidationError("Invalid tags (must be array)")
        new_tags = [str(tag) for tag in tags] if tags is not None else []

        existing = self._store.get_annotation(project_id, component_key)
        old_tags = list(existing.tags) if existing else []
        annotation = self._store.put_annotation(project_id, component_key, notes or "", new_tags)

        for tag in new_tags:
            if tag not in old_tags:
                self._store.increment_tag_usage(project_id, tag)
        for tag in old_tags:
            if tag not in new_tags:
                self._store.decrement_tag_usage(project_id, tag)
        _log.debug("Annotation {} saved with {} tags", annotation.id, len(new_tags))
        return annotation

    def delete_annotation(self, project_id: str, component_key: str) -> bool:
        return self._store.delete_annotation(
            _require_key(project_id, "projectId"), _require_key(component_key, "componentKey")
        )

    def get_override(self, project_id: str, component_key: str) -> Optional[ComponentOverride]:
        return self._store.get_override(
            _require_key(project_id, "projectId"), _require_key(component_key, "componentKey")
        )

    def list_overrides(self, project_id: str) -> dict[str, ComponentOverride]:
        overrides = self._store.list_overrides_for_project(_require_key(project_id, "projectId"))
        return {override.component_key: override for override in overrides}

    def upsert_override(
        self,
        project_id: str,
        component_key: str,
        *,
        display_name: Any = None,
        description: Any = None,
        category_override: Any = None,
        type_override: Any = None,
        status_override: Any = None,
    ) -> ComponentOverride:
        """Store label overrides; anything that is not a string is stored as ``None``."""

        _require_key(project_id, "projectId")
        _require_key(component_key, "componentKey")
        override = ComponentOverride(
            id=overlay_id(project_id, component_key),
            project_id=project_id,
            component_key=component_key,
            display_name=_label(display_name),
            description=_label(description),
            category_override=_label(category_override),
            type_override=_label(type_override),
            status_override=_label(status_override),
            updated_at=self._store.clock(),
        )
        return self._store.put_override(override)

    def delete_override(self, project_id: str, component_key: str) -> bool:
        return self._store.delete_override(
            _require_key(project_id, "projectId"), _require_key(component_key, "componentKey")
        )

    def list_project_tags(self, project_id: str) -> list[ProjectTag]:
        return self._store.get_all_project_tags(_require_key(project_id, "projectId"))

    def delete_project_tag(self, project_id: str, tag_name: str) -> int:
        """Strip ``tag_name`` from every annotation, drop the tag, return affected count."""

        _require_key(project_id, "projectId")
        _require_key(tag_name, "tagName")
        affected = self._store.get_components_with_tag(project_id, tag_name)
        for annotation in affected:
            self._store.put_annotation(
                project_id,
                annotation.component_key,
                annotation.notes,
                [tag for tag in annotation.tags if tag != tag_name],
            )
        self._store.delete_project_tag(project_id, tag_name)
        _log.info("Deleted tag {} from {} components", tag_name, len(affected))
        return len(affected)
