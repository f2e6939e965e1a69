"""SQLAlchemy ORM models for captures, sessions, blobs and project overlays.

Timestamps are epoch milliseconds, matching the exported record shape.
"""

from __future__ import annotations

from sqlalchemy import JSON, BigInteger, Boolean, Integer, LargeBinary, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class CaptureRow(Base):
    __tablename__ = "captures"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    session_id: Mapped[str] = mapped_column(String(128), index=True)
    project_id: Mapped[str | None] = mapped_column(String(128), index=True, nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, index=True, default=0)
    url: Mapped[str] = mapped_column(Text, default="")
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False)
    schema_version: Mapped[str] = mapped_column(String(16), default="2.2")
    payload: Mapped[dict] = mapped_column(JSON)


class SessionRow(Base):
    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    created_at: Mapped[int] = mapped_column(BigInteger, index=True, default=0)
    start_url: Mapped[str] = mapped_column(Text, default="")
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    pages_visited: Mapped[list | None] = mapped_column(JSON, nullable=True)


class BlobRow(Base):
    __tablename__ = "blobs"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    created_at: Mapped[int] = mapped_column(BigInteger, default=0)
    mime_type: Mapped[str] = mapped_column(String(64), default="image/webp")
    width: Mapped[int] = mapped_column(Integer, default=0)
    height: Mapped[int] = mapped_column(Integer, default=0)
    data: Mapped[bytes] = mapped_column(LargeBinary)


class ProjectRow(Base):
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(256))
    created_at: Mapped[int] = mapped_column(BigInteger, default=0)
    updated_at: Mapped[int] = mapped_column(BigInteger, index=True, default=0)


class ProjectSessionRow(Base):
    __tablename__ = "project_sessions"

    id: Mapped[str] = mapped_column(String(256), primary_key=True)
    project_id: Mapped[str] = mapped_column(String(128), index=True)
    session_id: Mapped[str] = mapped_column(String(128), index=True)
    linked_at: Mapped[int] = mapped_column(BigInteger, default=0)


class AnnotationRow(Base):
    __tablename__ = "annotations"

    id: Mapped[str] = mapped_column(String(256), primary_key=True)
    project_id: Mapped[str] = mapped_column(String(128), index=True)
    component_key: Mapped[str] = mapped_column(String(128))
    notes: Mapped[str] = mapped_column(Text, default="")
    tags: Mapped[list] = mapped_column(JSON, default=list)
    updated_at: Mapped[int] = mapped_column(BigInteger, default=0)


class ComponentOverrideRow(Base):
    __tablename__ = "component_overrides"

    id: Mapped[str] = mapped_column(String(256), primary_key=True)
    project_id: Mapped[str] = mapped_column(String(128), index=True)
    component_key: Mapped[str] = mapped_column(String(128))
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_override: Mapped[str | None] = mapped_column(String(64), nullable=True)
    type_override: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status_override: Mapped[str | None] = mapped_column(String(64), nullable=True)
    updated_at: Mapped[int] = mapped_column(BigInteger, default=0)


class ProjectTagRow(Base):
    __tablename__ = "project_tags"

    id: Mapped[str] = mapped_column(String(256), primary_key=True)
    project_id: Mapped[str] = mapped_column(String(128), index=True)
    tag_name: Mapped[str] = mapped_column(String(128))
    usage_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[int] = mapped_column(BigInteger, default=0)
    last_used_at: Mapped[int] = mapped_column(BigInteger, default=0)
