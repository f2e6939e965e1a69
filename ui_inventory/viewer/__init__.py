"""Viewer session state and per-session resources."""

from .blob_cache import BlobCache
from .session import LoadToken, ViewerSession

__all__ = ["BlobCache", "LoadToken", "ViewerSession"]
