"""Persistent record store backing the viewer."""

from .database import DatabaseManager
from .store import BlobRecord, CaptureStore

__all__ = ["BlobRecord", "CaptureStore", "DatabaseManager"]
