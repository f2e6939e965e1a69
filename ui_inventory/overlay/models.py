"""Persisted overlay and project record shapes.

Field names are snake_case in Python and camelCase on the wire; ``to_record``
emits the wire shape so stored documents round-trip unchanged.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

OVERRIDE_LABEL_FIELDS = (
    "displayName",
    "description",
    "categoryOverride",
    "typeOverride",
    "statusOverride",
)


def overlay_id(project_id: str, component_key: str) -> str:
    return f"{project_id}:{component_key}"


def project_session_link_id(project_id: str, session_id: str) -> str:
    return f"{project_id}::{session_id}"


def project_tag_id(project_id: str, tag_name: str) -> str:
    return f"{project_id}:{tag_name}"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Annotation(_WireModel):
    id: str
    project_id: str = Field(alias="projectId")
    component_key: str = Field(alias="componentKey")
    notes: str = ""
    tags: list[str] = Field(default_factory=list)
    updated_at: int = Field(0, alias="updatedAt")


class ComponentOverride(_WireModel):
    id: str
    project_id: str = Field(alias="projectId")
    component_key: str = Field(alias="componentKey")
    display_name: Optional[str] = Field(None, alias="displayName")
    description: Optional[str] = None
    category_override: Optional[str] = Field(None, alias="categoryOverride")
    type_override: Optional[str] = Field(None, alias="typeOverride")
    status_override: Optional[str] = Field(None, alias="statusOverride")
    updated_at: int = Field(0, alias="updatedAt")


class Project(_WireModel):
    id: str
    name: str
    created_at: int = Field(0, alias="createdAt")
    updated_at: int = Field(0, alias="updatedAt")


class SessionInfo(_WireModel):
    id: str
    created_at: int = Field(0, alias="createdAt")
    start_url: str = Field("", alias="startUrl")
    user_agent: Optional[str] = Field(None, alias="userAgent")
    pages_visited: Optional[list[str]] = Field(None, alias="pagesVisited")


class ProjectSessionLink(_WireModel):
    id: str
    project_id: str = Field(alias="projectId")
    session_id: str = Field(alias="sessionId")
    linked_at: int = Field(0, alias="linkedAt")


class ProjectTag(_WireModel):
    id: str
    project_id: str = Field(alias="projectId")
    tag_name: str = Field(alias="tagName")
    usage_count: int = Field(0, ge=0, alias="usageCount")
    created_at: int = Field(0, alias="createdAt")
    last_used_at: int = Field(0, alias="lastUsedAt")
