from __future__ import annotations

import pytest
from conftest import v2_payload
from sqlalchemy.exc import OperationalError

from ui_inventory.errors import StoreError
from ui_inventory.overlay.models import SessionInfo
from ui_inventory.storage.store import BlobRecord


def test_save_and_get_capture_adapts_payload(store) -> None:
    store.save_capture(v2_payload("c1", name="Buy now"))
    capture = store.get_capture("c1")
    assert capture is not None
    assert capture.accessible_name == "Buy now"
    assert capture.payload["element"]["tagName"] == "button"
    assert store.get_capture("missing") is None


def test_save_capture_requires_ids(store) -> None:
    payload = v2_payload("c1")
    del payload["sessionId"]
    with pytest.raises(ValueError):
        store.save_capture(payload)


def test_list_captures_by_session_newest_first(store) -> None:
    for index in range(3):
        store.save_capture(v2_payload(f"c{index}", created_at=1000 + index))
    store.save_capture(v2_payload("other", session_id="s2"))
    assert [c.id for c in store.list_captures_by_session("s1")] == ["c2", "c1", "c0"]
    assert [c.id for c in store.list_captures_by_session("s1", limit=2)] == ["c2", "c1"]


def test_scoped_listing_uses_project_id_then_session_links(store) -> None:
    project = store.create_project("  Marketing site ")
    other = store.create_project("Other")
    store.link_session_to_project(project.id, "s-linked")
    store.link_session_to_project(other.id, "s-other")

    store.save_capture(v2_payload("direct", session_id="s-any", project_id=project.id, created_at=3))
    store.save_capture(v2_payload("legacy", session_id="s-linked", created_at=1))
    store.save_capture(v2_payload("foreign", session_id="s-linked", project_id=other.id, created_at=2))
    store.save_capture(v2_payload("draft", session_id="s-linked", created_at=4, is_draft=True))
    store.save_capture(v2_payload("unlinked", session_id="s-other", created_at=5))

    assert project.name == "Marketing site"
    assert [c.id for c in store.list_captures_scoped(project.id)] == ["legacy", "direct"]
    assert [c.id for c in store.list_captures_scoped(project.id, include_drafts=True)] == [
        "legacy",
        "direct",
        "draft",
    ]
    assert [c.id for c in store.list_captures_scoped(other.id)] == ["foreign", "unlinked"]
    assert store.get_project_capture_count(project.id) == 3


def test_commit_draft_capture(store) -> None:
    project = store.create_project("P")
    store.save_capture(v2_payload("d1", project_id=project.id, is_draft=True))
    assert store.list_captures_scoped(project.id) == []
    assert store.commit_draft_capture("d1") is True
    assert [c.id for c in store.list_captures_scoped(project.id)] == ["d1"]
    assert store.get_capture("d1").payload["isDraft"] is False
    assert store.commit_draft_capture("missing") is False


def test_create_project_rejects_blank_name(store) -> None:
    with pytest.raises(ValueError):
        store.create_project("   ")


def test_project_ids_and_links(store) -> None:
    project = store.create_project("Docs")
    assert project.id.startswith("project-")
    first = store.link_session_to_project(project.id, "s1")
    again = store.link_session_to_project(project.id, "s1")
    store.link_session_to_project(project.id, "s0")
    assert first.id == f"{project.id}::s1"
    assert again.linked_at == first.linked_at
    assert store.list_session_ids_for_project(project.id) == ["s1", "s0"]
    assert [p.id for p in store.list_projects()] == [project.id]


def test_sessions_and_blobs(store) -> None:
    store.save_session(SessionInfo(id="s1", created_at=1, start_url="https://a.test/"))
    store.save_session(SessionInfo(id="s2", created_at=2, start_url="https://b.test/"))
    assert [s.id for s in store.list_sessions()] == ["s2", "s1"]
    assert store.get_session("s1").start_url == "https://a.test/"

    store.save_blob(BlobRecord(id="b1", data=b"png", mime_type="image/png", width=2, height=3))
    blob = store.get_blob("b1")
    assert blob.data == b"png"
    assert (blob.width, blob.height) == (2, 3)
    assert store.get_blob("nope") is None


def test_delete_capture(store) -> None:
    store.save_capture(v2_payload("c1"))
    assert store.delete_capture("c1") is True
    assert store.delete_capture("c1") is False


def test_database_errors_surface_as_store_error(store, monkeypatch) -> None:
    def _boom(fn):
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    monkeypatch.setattr(store._db, "transaction", _boom)
    with pytest.raises(StoreError):
        store.get_annotation("p1", "k1")
    with pytest.raises(StoreError):
        store.list_captures_scoped("p1")
    # Picker listings degrade to empty results.
    assert store.list_captures_by_session("s1") == []
    assert store.list_sessions() == []
