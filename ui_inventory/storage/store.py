"""Keyed-record store for captures, sessions, blobs, projects and overlays.

Every SQLAlchemy failure is logged and re-raised as ``StoreError``. Listing
helpers used only to populate pickers degrade to an empty result instead.
"""

from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, TypeVar

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..capture.adapter import capture_from_payload
from ..capture.models import CaptureRecord
from ..errors import StoreError
from ..logging_utils import get_logger
from ..overlay.models import (
    Annotation,
    ComponentOverride,
    Project,
    ProjectSessionLink,
    ProjectTag,
    SessionInfo,
    overlay_id,
    project_session_link_id,
    project_tag_id,
)
from ..scoping import scope_captures
from .database import DatabaseManager
from .models import (
    AnnotationRow,
    BlobRow,
    CaptureRow,
    ComponentOverrideRow,
    ProjectRow,
    ProjectSessionRow,
    ProjectTagRow,
    SessionRow,
)

T = TypeVar("T")

_ID_ALPHABET = string.ascii_lowercase + string.digits


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class BlobRecord:
    id: str
    data: bytes
    mime_type: str = "image/webp"
    width: int = 0
    height: int = 0
    created_at: int = 0


class CaptureStore:
    def __init__(self, db: DatabaseManager, *, clock: Callable[[], int] = now_ms) -> None:
        self._db = db
        self._clock = clock
        self._log = get_logger("store")

    def clock(self) -> int:
        return self._clock()

    def _run(self, operation: str, fn: Callable[[Session], T]) -> T:
        try:
            return self._db.transaction(fn)
        except SQLAlchemyError as exc:
            self._log.error("Store operation {} failed: {}", operation, exc)
            raise StoreError(f"{operation} failed: {exc}") from exc

    # Captures

    def save_capture(self, payload: Mapping[str, Any]) -> CaptureRecord:
        capture = capture_from_payload(payload)
        if not capture.id or not capture.session_id:
            raise ValueError("Capture payload requires id and sessionId")

        def _save(session: Session) -> None:
            row = session.get(CaptureRow, capture.id) or CaptureRow(id=capture.id)
            row.session_id = capture.session_id
            row.project_id = capture.project_id
            row.created_at = capture.created_at or 0
            row.url = capture.url
            row.is_draft = capture.is_draft
            row.schema_version = str(payload.get("captureSchemaVersion") or capture.schema_version)
            row.payload = dict(payload)
            session.add(row)

        self._run("save_capture", _save)
        return capture

    def get_capture(self, capture_id: str) -> Optional[CaptureRecord]:
        def _get(session: Session) -> Optional[dict]:
            row = session.get(CaptureRow, capture_id)
            return dict(row.payload) if row else None

        payload = self._run("get_capture", _get)
        return capture_from_payload(payload) if payload is not None else None

    def delete_capture(self, capture_id: str) -> bool:
        def _delete(session: Session) -> bool:
            row = session.get(CaptureRow, capture_id)
            if row is None:
                return False
            session.delete(row)
            return True

        return self._run("delete_capture", _delete)

    def commit_draft_capture(self, capture_id: str) -> bool:
        """Clear the draft flag; the only mutation a stored capture ever receives."""

        def _commit(session: Session) -> bool:
            row = session.get(CaptureRow, capture_id)
            if row is None:
                return False
            row.is_draft = False
            row.payload = {**row.payload, "isDraft": False}
            return True

        return self._run("commit_draft_capture", _commit)

    def list_captures_by_session(
        self, session_id: str, limit: Optional[int] = 200
    ) -> list[CaptureRecord]:
        """Newest first; an empty list when the store cannot be read."""

        def _list(session: Session) -> list[dict]:
            stmt = (
                select(CaptureRow.payload)
                .where(CaptureRow.session_id == session_id)
                .order_by(CaptureRow.created_at.desc())
            )
            if limit is not None:
                stmt = stmt.limit(limit)
            return [dict(payload) for payload in session.scalars(stmt)]

        try:
            payloads = self._db.transaction(_list)
        except SQLAlchemyError as exc:
            self._log.warning("Failed to list captures for session {}: {}", session_id, exc)
            return []
        return [capture_from_payload(payload) for payload in payloads]

    def list_captures_scoped(
        self, project_id: str, *, include_drafts: bool = False
    ) -> list[CaptureRecord]:
        """Captures belonging to ``project_id``, oldest first."""

        session_ids = self.list_session_ids_for_project(project_id)

        def _list(session: Session) -> list[dict]:
            clauses = [CaptureRow.project_id == project_id]
            if session_ids:
                clauses.append(CaptureRow.session_id.in_(session_ids))
            stmt = select(CaptureRow.payload).where(or_(*clauses))
            if not include_drafts:
                stmt = stmt.where(CaptureRow.is_draft.is_(False))
            stmt = stmt.order_by(CaptureRow.created_at.asc(), CaptureRow.id.asc())
            return [dict(payload) for payload in session.scalars(stmt)]

        captures = [capture_from_payload(p) for p in self._run("list_captures_scoped", _list)]
        return scope_captures(captures, project_id, session_ids)

    # Sessions

    def save_session(self, info: SessionInfo) -> SessionInfo:
        def _save(session: Session) -> None:
            row = session.get(SessionRow, info.id) or SessionRow(id=info.id)
            row.created_at = info.created_at
            row.start_url = info.start_url
            row.user_agent = info.user_agent
            row.pages_visited = list(info.pages_visited) if info.pages_visited is not None else None
            session.add(row)

        self._run("save_session", _save)
        return info

    def get_session(self, session_id: str) -> Optional[SessionInfo]:
        def _get(session: Session) -> Optional[SessionInfo]:
            row = session.get(SessionRow, session_id)
            return _session_info(row) if row else None

        return self._run("get_session", _get)

    def list_sessions(self, limit: Optional[int] = 10) -> list[SessionInfo]:
        def _list(session: Session) -> list[SessionInfo]:
            stmt = select(SessionRow).order_by(SessionRow.created_at.desc())
            if limit is not None:
                stmt = stmt.limit(limit)
            return [_session_info(row) for row in session.scalars(stmt)]

        try:
            return self._db.transaction(_list)
        except SQLAlchemyError as exc:
            self._log.warning("Failed to list sessions: {}", exc)
            return []

    # Blobs

    def save_blob(self, blob: BlobRecord) -> None:
        def _save(session: Session) -> None:
            row = session.get(BlobRow, blob.id) or BlobRow(id=blob.id)
            row.data = blob.data
            row.mime_type = blob.mime_type
            row.width = blob.width
            row.height = blob.height
            row.created_at = blob.created_at or self._clock()
            session.add(row)

        self._run("save_blob", _save)

    def get_blob(self, blob_id: str) -> Optional[BlobRecord]:
        def _get(session: Session) -> Optional[BlobRecord]:
            row = session.get(BlobRow, blob_id)
            if row is None:
                return None
            return BlobRecord(
                id=row.id,
                data=bytes(row.data),
                mime_type=row.mime_type,
                width=row.width,
                height=row.height,
                created_at=row.created_at,
            )

        return self._run("get_blob", _get)

    # Projects

    def create_project(self, name: str) -> Project:
        trimmed = (name or "").strip()
        if not trimmed:
            raise ValueError("Project name cannot be empty")
        now = self._clock()
        suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
        project = Project(id=f"project-{now}-{suffix}", name=trimmed, created_at=now, updated_at=now)

        def _save(session: Session) -> None:
            session.add(
                ProjectRow(
                    id=project.id,
                    name=project.name,
                    created_at=project.created_at,
                    updated_at=project.updated_at,
                )
            )

        self._run("create_project", _save)
        self._log.info("Created project {}", project.id)
        return project

    def get_project(self, project_id: str) -> Optional[Project]:
        def _get(session: Session) -> Optional[Project]:
            row = session.get(ProjectRow, project_id)
            return _project(row) if row else None

        return self._run("get_project", _get)

    def list_projects(self) -> list[Project]:
        def _list(session: Session) -> list[Project]:
            stmt = select(ProjectRow).order_by(ProjectRow.updated_at.desc(), ProjectRow.id)
            return [_project(row) for row in session.scalars(stmt)]

        return self._run("list_projects", _list)

    def link_session_to_project(self, project_id: str, session_id: str) -> ProjectSessionLink:
        """Link once; relinking an existing pair keeps the original link time."""

        if not project_id or not session_id:
            raise ValueError("project_id and session_id are required")
        link_id = project_session_link_id(project_id, session_id)

        def _link(session: Session) -> ProjectSessionLink:
            row = session.get(ProjectSessionRow, link_id)
            if row is None:
                row = ProjectSessionRow(
                    id=link_id,
                    project_id=project_id,
                    session_id=session_id,
                    linked_at=self._clock(),
                )
                session.add(row)
            return ProjectSessionLink(
                id=row.id,
                project_id=row.project_id,
                session_id=row.session_id,
                linked_at=row.linked_at,
            )

        return self._run("link_session_to_project", _link)

    def list_session_ids_for_project(self, project_id: str) -> list[str]:
        if not project_id:
            raise ValueError("project_id is required")

        def _list(session: Session) -> list[str]:
            stmt = (
                select(ProjectSessionRow.session_id)
                .where(ProjectSessionRow.project_id == project_id)
                .order_by(ProjectSessionRow.linked_at.asc(), ProjectSessionRow.id.asc())
            )
            return list(session.scalars(stmt))

        return self._run("list_session_ids_for_project", _list)

    def get_project_capture_count(self, project_id: str) -> int:
        return len(self.list_captures_scoped(project_id, include_drafts=True))

    # Annotations

    def get_annotation(self, project_id: str, component_key: str) -> Optional[Annotation]:
        def _get(session: Session) -> Optional[Annotation]:
            row = session.get(AnnotationRow, overlay_id(project_id, component_key))
            return _annotation(row) if row else None

        return self._run("get_annotation", _get)

    def list_annotations_for_project(self, project_id: str) -> list[Annotation]:
        def _list(session: Session) -> list[Annotation]:
            stmt = select(AnnotationRow).where(AnnotationRow.project_id == project_id)
            return [_annotation(row) for row in session.scalars(stmt.order_by(AnnotationRow.id))]

        return self._run("list_annotations_for_project", _list)

    def put_annotation(
        self, project_id: str, component_key: str, notes: str, tags: Iterable[str]
    ) -> Annotation:
        annotation = Annotation(
            id=overlay_id(project_id, component_key),
            project_id=project_id,
            component_key=component_key,
            notes=notes,
            tags=list(tags),
            updated_at=self._clock(),
        )

        def _put(session: Session) -> None:
            row = session.get(AnnotationRow, annotation.id) or AnnotationRow(id=annotation.id)
            row.project_id = project_id
            row.component_key = component_key
            row.notes = annotation.notes
            row.tags = list(annotation.tags)
            row.updated_at = annotation.updated_at
            session.add(row)

        self._run("put_annotation", _put)
        return annotation

    def delete_annotation(self, project_id: str, component_key: str) -> bool:
        return self._delete_row("delete_annotation", AnnotationRow, overlay_id(project_id, component_key))

    def get_components_with_tag(self, project_id: str, tag_name: str) -> list[Annotation]:
        return [
            annotation
            for annotation in self.list_annotations_for_project(project_id)
            if tag_name in annotation.tags
        ]

    # Overrides

    def get_override(self, project_id: str, component_key: str) -> Optional[ComponentOverride]:
        def _get(session: Session) -> Optional[ComponentOverride]:
            row = session.get(ComponentOverrideRow, overlay_id(project_id, component_key))
            return _override(row) if row else None

        return self._run("get_override", _get)

    def list_overrides_for_project(self, project_id: str) -> list[ComponentOverride]:
        def _list(session: Session) -> list[ComponentOverride]:
            stmt = (
                select(ComponentOverrideRow)
                .where(ComponentOverrideRow.project_id == project_id)
                .order_by(ComponentOverrideRow.id)
            )
            return [_override(row) for row in session.scalars(stmt)]

        return self._run("list_overrides_for_project", _list)

    def put_override(self, override: ComponentOverride) -> ComponentOverride:
        def _put(session: Session) -> None:
            row = session.get(ComponentOverrideRow, override.id) or ComponentOverrideRow(id=override.id)
            row.project_id = override.project_id
            row.component_key = override.component_key
            row.display_name = override.display_name
            row.description = override.description
            row.category_override = override.category_override
            row.type_override = override.type_override
            row.status_override = override.status_override
            row.updated_at = override.updated_at
            session.add(row)

        self._run("put_override", _put)
        return override

    def delete_override(self, project_id: str, component_key: str) -> bool:
        return self._delete_row(
            "delete_override", ComponentOverrideRow, overlay_id(project_id, component_key)
        )

    # Project tags

    def get_all_project_tags(self, project_id: str) -> list[ProjectTag]:
        """Most used first, then alphabetical."""

        def _list(session: Session) -> list[ProjectTag]:
            stmt = (
                select(ProjectTagRow)
                .where(ProjectTagRow.project_id == project_id)
                .order_by(ProjectTagRow.usage_count.desc(), ProjectTagRow.tag_name.asc())
            )
            return [_project_tag(row) for row in session.scalars(stmt)]

        return self._run("get_all_project_tags", _list)

    def increment_tag_usage(self, project_id: str, tag_name: str) -> ProjectTag:
        now = self._clock()

        def _increment(session: Session) -> ProjectTag:
            tag_id = project_tag_id(project_id, tag_name)
            row = session.get(ProjectTagRow, tag_id)
            if row is None:
                row = ProjectTagRow(
                    id=tag_id,
                    project_id=project_id,
                    tag_name=tag_name,
                    usage_count=0,
                    created_at=now,
                )
                session.add(row)
            row.usage_count = (row.usage_count or 0) + 1
            row.last_used_at = now
            return _project_tag(row)

        return self._run("increment_tag_usage", _increment)

    def decrement_tag_usage(self, project_id: str, tag_name: str) -> Optional[ProjectTag]:
        def _decrement(session: Session) -> Optional[ProjectTag]:
            row = session.get(ProjectTagRow, project_tag_id(project_id, tag_name))
            if row is None:
                return None
            row.usage_count = max(0, (row.usage_count or 0) - 1)
            return _project_tag(row)

        return self._run("decrement_tag_usage", _decrement)

    def delete_project_tag(self, project_id: str, tag_name: str) -> bool:
        return self._delete_row(
            "delete_project_tag", ProjectTagRow, project_tag_id(project_id, tag_name)
        )

    def _delete_row(self, operation: str, model: type, row_id: str) -> bool:
        def _delete(session: Session) -> bool:
            row = session.get(model, row_id)
            if row is None:
                return False
            session.delete(row)
            return True

        return self._run(operation, _delete)


def _session_info(row: SessionRow) -> SessionInfo:
    return SessionInfo(
        id=row.id,
        created_at=row.created_at,
        start_url=row.start_url,
        user_agent=row.user_agent,
        pages_visited=list(row.pages_visited) if row.pages_visited is not None else None,
    )


def _project(row: ProjectRow) -> Project:
    return Project(id=row.id, name=row.name, created_at=row.created_at, updated_at=row.updated_at)


def _annotation(row: AnnotationRow) -> Annotation:
    return Annotation(
        id=row.id,
        project_id=row.project_id,
        component_key=row.component_key,
        notes=row.notes or "",
        tags=list(row.tags or []),
        updated_at=row.updated_at,
    )


def _override(row: ComponentOverrideRow) -> ComponentOverride:
    return ComponentOverride(
        id=row.id,
        project_id=row.project_id,
        component_key=row.component_key,
        display_name=row.display_name,
        description=row.description,
        category_override=row.category_override,
        type_override=row.type_override,
        status_override=row.status_override,
        updated_at=row.updated_at,
    )


def _project_tag(row: ProjectTagRow) -> ProjectTag:
    return ProjectTag(
        id=row.id,
        project_id=row.project_id,
        tag_name=row.tag_name,
        usage_count=row.usage_count,
        created_at=row.created_at,
        last_used_at=row.last_used_at,
    )
