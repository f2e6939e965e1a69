"""Capture record shapes and schema adaptation."""

from .adapter import capture_from_payload
from .models import CaptureRecord, ColorValue, Rgba, ScreenshotRef, StylePrimitives

__all__ = [
    "CaptureRecord",
    "ColorValue",
    "Rgba",
    "ScreenshotRef",
    "StylePrimitives",
    "capture_from_payload",
]
