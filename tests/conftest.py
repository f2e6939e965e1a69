from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ui_inventory.capture.models import CaptureRecord, ColorValue, Rgba, ScreenshotRef, StylePrimitives
from ui_inventory.config import DatabaseConfig
from ui_inventory.storage.database import DatabaseManager
from ui_inventory.storage.store import CaptureStore


def make_capture(
    capture_id: str,
    *,
    tag: Optional[str] = "button",
    role: Optional[str] = "button",
    name: Optional[str] = "Submit",
    url: str = "https://example.com/",
    session_id: str = "s1",
    project_id: Optional[str] = None,
    primitives: Optional[StylePrimitives] = None,
    screenshot: Optional[str] = None,
    created_at: Optional[int] = None,
) -> CaptureRecord:
    return CaptureRecord(
        id=capture_id,
        session_id=session_id,
        url=url,
        created_at=created_at,
        tag_name=tag,
        role=role,
        accessible_name=name,
        project_id=project_id,
        screenshot=ScreenshotRef(blob_id=screenshot) if screenshot else None,
        primitives=primitives,
    )


def make_primitives(
    padding: str = "8px",
    background: Optional[Rgba] = None,
    color: Optional[Rgba] = None,
    sources: Optional[dict[str, str]] = None,
    **kwargs: Any,
) -> StylePrimitives:
    background = background or Rgba(0, 0, 255, 1)
    color = color or Rgba(255, 255, 255, 1)
    return StylePrimitives(
        padding_top=padding,
        padding_right=padding,
        padding_bottom=padding,
        padding_left=padding,
        background_color=ColorValue(raw=_rgb(background), rgba=background),
        color=ColorValue(raw=_rgb(color), rgba=color),
        sources=sources or {},
        **kwargs,
    )


def _rgb(rgba: Rgba) -> str:
    return f"rgb({int(rgba.r)}, {int(rgba.g)}, {int(rgba.b)})"


def v2_payload(
    capture_id: str,
    *,
    session_id: str = "s1",
    project_id: Optional[str] = None,
    created_at: int = 1_700_000_000_000,
    tag: str = "button",
    role: Optional[str] = "button",
    name: Optional[str] = "Submit",
    url: str = "https://example.com/pricing",
    padding: str = "8px",
    is_draft: bool = False,
    blob_id: Optional[str] = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": capture_id,
        "sessionId": session_id,
        "captureSchemaVersion": 2,
        "createdAt": created_at,
        "url": url,
        "element": {
            "tagName": tag,
            "role": role,
            "intent": {"accessibleName": name},
            "textPreview": name,
        },
        "styles": {
            "computed": {"padding-top": padding},
            "primitives": {
                "spacing": {
                    "paddingTop": padding,
                    "paddingRight": padding,
                    "paddingBottom": padding,
                    "paddingLeft": padding,
                },
                "backgroundColor": {
                    "raw": "rgb(0, 0, 255)",
                    "rgba": {"r": 0, "g": 0, "b": 255, "a": 1},
                },
                "color": {
                    "raw": "rgb(255, 255, 255)",
                    "rgba": {"r": 255, "g": 255, "b": 255, "a": 1},
                },
                "shadow": {"shadowPresence": "none", "shadowLayerCount": 0},
                "sources": {"backgroundColor": "var(--color-primary)"},
            },
        },
    }
    if project_id is not None:
        payload["projectId"] = project_id
    if is_draft:
        payload["isDraft"] = True
    if blob_id is not None:
        payload["screenshot"] = {"screenshotBlobId": blob_id, "mimeType": "image/png"}
    return payload


class FakeClock:
    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


@pytest.fixture
def store(tmp_path: Path) -> CaptureStore:
    db = DatabaseManager(DatabaseConfig(url=f"sqlite:///{tmp_path / 'inventory.db'}"))
    return CaptureStore(db, clock=FakeClock())
